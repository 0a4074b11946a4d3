"""Interval relationship classification and per-candidate conflict reports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .formatting import format_time_range
from .models import Event, Interval, event_sort_key
from .timebasis import TimeBasis

logger = logging.getLogger("mcp-calendar-grid")


class ConflictKind(str, Enum):
    DUPLICATE = "duplicate"
    OVERLAP = "overlap"
    ADJACENT = "adjacent"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


SEVERITY_BY_KIND = {
    ConflictKind.DUPLICATE: Severity.ERROR,
    ConflictKind.OVERLAP: Severity.ERROR,
    ConflictKind.ADJACENT: Severity.WARNING,
}


@dataclass(frozen=True)
class ConflictReport:
    kind: ConflictKind
    severity: Severity
    with_event: Event
    message: str


def classify(
    a: Interval,
    b: Interval,
    allow_adjacent: bool = True,
    same_title: bool = True,
) -> ConflictKind | None:
    """Classify two intervals, highest priority first.

    Duplicate needs identical bounds and, when full events are compared,
    identical titles (``same_title``). Adjacency only counts when
    ``allow_adjacent`` is false.
    """
    if a.same_span(b) and same_title:
        return ConflictKind.DUPLICATE
    if a.overlaps(b):
        return ConflictKind.OVERLAP
    if not allow_adjacent and a.touches(b):
        return ConflictKind.ADJACENT
    return None


class ConflictDetector:
    def __init__(self, basis: TimeBasis | None = None, allow_adjacent: bool = True):
        self.basis = basis or TimeBasis()
        self.allow_adjacent = allow_adjacent

    def classify_events(
        self, candidate: Event, existing: Event, allow_adjacent: bool | None = None
    ) -> ConflictKind | None:
        if allow_adjacent is None:
            allow_adjacent = self.allow_adjacent
        return classify(
            candidate.interval,
            existing.interval,
            allow_adjacent=allow_adjacent,
            same_title=candidate.title == existing.title,
        )

    def _message(self, kind: ConflictKind, existing: Event) -> str:
        span = format_time_range(existing.start, existing.end, self.basis)
        if kind is ConflictKind.DUPLICATE:
            return f"Duplicate meeting time: {span}"
        if kind is ConflictKind.OVERLAP:
            return f'Meeting overlaps with "{existing.title}" ({span})'
        return f'Meeting is adjacent to "{existing.title}" - consider adding buffer time'

    def check_conflicts(
        self,
        candidate: Event,
        existing_events: Iterable[Event],
        allow_adjacent: bool | None = None,
    ) -> list[ConflictReport]:
        """Reports for every existing event that collides with ``candidate``.

        The candidate's own id is skipped so that re-checking an event being
        edited in place does not report it against itself. A candidate with
        an empty id is a new meeting and is checked against everything.
        Reports are ordered by the existing event's start.
        """
        reports = []
        for existing in sorted(existing_events, key=event_sort_key):
            if candidate.id and existing.id == candidate.id:
                continue
            kind = self.classify_events(candidate, existing, allow_adjacent)
            if kind is None:
                continue
            reports.append(ConflictReport(
                kind=kind,
                severity=SEVERITY_BY_KIND[kind],
                with_event=existing,
                message=self._message(kind, existing),
            ))

        if reports:
            logger.debug("Candidate '%s' has %d conflict(s)", candidate.id, len(reports))
        return reports

    def has_conflict(
        self,
        candidate: Event,
        existing_events: Iterable[Event],
        allow_adjacent: bool | None = None,
    ) -> bool:
        return bool(self.check_conflicts(candidate, existing_events, allow_adjacent))


def blocking(reports: Iterable[ConflictReport]) -> list[ConflictReport]:
    """The error-severity subset, i.e. the reports that should block a save."""
    return [r for r in reports if r.severity is Severity.ERROR]
