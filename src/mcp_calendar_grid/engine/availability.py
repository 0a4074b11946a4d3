"""Per-attendee free/busy checks for a candidate interval."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .models import Event, event_sort_key


@dataclass(frozen=True)
class AvailabilityResult:
    attendee_id: str
    is_available: bool
    conflicting_events: tuple[Event, ...] = ()


class AvailabilityChecker:
    """Answers "can this person attend", independent of conflict kinds.

    Only a real overlap makes an attendee busy. Back-to-back meetings never
    do, whatever the adjacency policy of the conflict detector.
    """

    def check(
        self,
        candidate: Event,
        existing_events: Iterable[Event],
        attendee_ids: Iterable[str] | None = None,
    ) -> list[AvailabilityResult]:
        """One result per attendee, in the given order.

        ``attendee_ids`` defaults to the candidate's own attendees (sorted).
        An empty attendee set gives an empty list.
        """
        if attendee_ids is None:
            attendee_ids = sorted(candidate.attendee_ids)
        else:
            attendee_ids = list(dict.fromkeys(attendee_ids))

        overlapping = sorted(
            (
                e for e in existing_events
                if not (candidate.id and e.id == candidate.id) and e.interval.overlaps(candidate.interval)
            ),
            key=event_sort_key,
        )

        results = []
        for attendee_id in attendee_ids:
            busy = tuple(e for e in overlapping if attendee_id in e.attendee_ids)
            results.append(AvailabilityResult(
                attendee_id=attendee_id,
                is_available=not busy,
                conflicting_events=busy,
            ))
        return results

    def unavailable(self, results: Iterable[AvailabilityResult]) -> list[str]:
        return [r.attendee_id for r in results if not r.is_available]
