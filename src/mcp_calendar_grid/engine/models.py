"""Value types shared by every engine component."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .errors import InvalidInterval


@dataclass(frozen=True)
class Interval:
    """Half-open time range ``[start, end)`` between two tz-aware instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidInterval(self.start, self.end, "start and end must be timezone-aware")
        if self.end <= self.start:
            raise InvalidInterval(self.start, self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: Interval) -> bool:
        return self.start < other.end and other.start < self.end

    def touches(self, other: Interval) -> bool:
        """True when the intervals meet end-to-start with zero gap."""
        return self.end == other.start or other.end == self.start

    def same_span(self, other: Interval) -> bool:
        return self.start == other.start and self.end == other.end

    def shifted(self, delta: timedelta) -> Interval:
        return Interval(self.start + delta, self.end + delta)


@dataclass(frozen=True)
class Event:
    """Calendar event snapshot supplied by the caller. Never mutated."""

    id: str
    title: str
    interval: Interval
    attendee_ids: frozenset[str] = field(default_factory=frozenset)
    all_day: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        # Accept any iterable of ids but store a frozenset so events stay hashable
        if not isinstance(self.attendee_ids, frozenset):
            object.__setattr__(self, "attendee_ids", frozenset(self.attendee_ids))

    @property
    def start(self) -> datetime:
        return self.interval.start

    @property
    def end(self) -> datetime:
        return self.interval.end


def event_sort_key(event: Event) -> tuple[datetime, str]:
    """Order by interval start, ties broken by id."""
    return (event.interval.start, event.id)
