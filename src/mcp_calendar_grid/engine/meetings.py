"""Meeting form checks and small meeting-level helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable

from .formatting import duration_minutes
from .models import Event, Interval, event_sort_key
from .timebasis import TimeBasis

MIN_DURATION_MINUTES = 5
MAX_DURATION_MINUTES = 480
BUSINESS_HOURS = (8, 18)
MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 1000


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_meeting(
    title: str | None,
    start: datetime | None,
    end: datetime | None,
    description: str = "",
    now: datetime | None = None,
    basis: TimeBasis | None = None,
) -> ValidationResult:
    """Collect blocking errors and non-blocking warnings for a meeting form.

    The past-start warning is only produced when ``now`` is supplied.
    """
    basis = basis or TimeBasis()
    result = ValidationResult()

    if not title or not title.strip():
        result.errors.append("Meeting title is required")
    if start is None:
        result.errors.append("Start time is required")
    if end is None:
        result.errors.append("End time is required")

    if start is not None and end is not None:
        local_start = basis.localize(start)
        local_end = basis.localize(end)
        if local_start >= local_end:
            result.errors.append("End time must be after start time")

        minutes = duration_minutes(local_start, local_end)
        if minutes < MIN_DURATION_MINUTES:
            result.warnings.append(
                f"Meeting duration is very short (less than {MIN_DURATION_MINUTES} minutes)"
            )
        if minutes > MAX_DURATION_MINUTES:
            result.warnings.append("Meeting duration is very long (more than 8 hours)")

        if now is not None and local_start < basis.localize(now):
            result.warnings.append("Meeting is scheduled in the past")
        if basis.is_weekend(local_start):
            result.warnings.append("Meeting is scheduled for a weekend")

        opens, closes = BUSINESS_HOURS
        if local_start.hour < opens or local_start.hour > closes:
            result.warnings.append("Meeting is scheduled outside business hours")

    if title and len(title) > MAX_TITLE_LENGTH:
        result.warnings.append("Meeting title is very long")
    if description and len(description) > MAX_DESCRIPTION_LENGTH:
        result.warnings.append("Meeting description is very long")

    return result


def meeting_status(event: Event, now: datetime) -> str:
    """``upcoming``, ``ongoing`` (end inclusive) or ``completed``."""
    if now < event.start:
        return "upcoming"
    if now <= event.end:
        return "ongoing"
    return "completed"


def default_meeting_interval(
    reference: datetime,
    duration: int = 60,
    basis: TimeBasis | None = None,
) -> Interval:
    """Next half-hour boundary at or after ``reference``, lasting ``duration`` minutes."""
    basis = basis or TimeBasis()
    local = basis.localize(reference).replace(second=0, microsecond=0)
    if local.minute % 30 or basis.localize(reference) != local:
        local += timedelta(minutes=30 - local.minute % 30)
    return Interval(local, local + timedelta(minutes=duration))


def group_events_by_date(
    events: Iterable[Event], basis: TimeBasis | None = None
) -> dict[date, list[Event]]:
    """Events keyed by local start date, dates ascending, events by start."""
    basis = basis or TimeBasis()
    grouped: dict[date, list[Event]] = {}
    for event in sorted(events, key=event_sort_key):
        key = event.start.date() if event.all_day else basis.local_date(event.start)
        grouped.setdefault(key, []).append(event)
    return dict(sorted(grouped.items()))
