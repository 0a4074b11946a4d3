"""Debounced, superseding conflict checks for interactive editors.

A form that re-checks conflicts on every keystroke issues many overlapping
requests. ``ConflictCheckSession`` gives each request a monotonically
increasing sequence number, waits out a quiescence window, and lets only
the most recently issued request update ``session.latest``. Older requests
resolve to ``None``.

With an ``authoritative`` event source (a fuller event set held elsewhere),
checks run in two tiers. A conflict found in the local snapshot is
published right away as confirmed. A clean local result is published as
provisional and only becomes confirmed once the authoritative set is
checked and is also clean.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence

from .engine.availability import AvailabilityChecker, AvailabilityResult
from .engine.conflicts import ConflictDetector, ConflictReport, blocking
from .engine.models import Event

logger = logging.getLogger("mcp-calendar-grid")

AuthoritativeSource = Callable[[Event], Awaitable[Sequence[Event]]]


@dataclass(frozen=True)
class CheckOutcome:
    sequence: int
    conflicts: tuple[ConflictReport, ...]
    availability: tuple[AvailabilityResult, ...]
    confirmed: bool

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicts)

    @property
    def is_blocked(self) -> bool:
        return bool(blocking(self.conflicts)) or any(not a.is_available for a in self.availability)


class ConflictCheckSession:
    def __init__(
        self,
        detector: ConflictDetector | None = None,
        availability: AvailabilityChecker | None = None,
        debounce_seconds: float = 0.3,
        authoritative: AuthoritativeSource | None = None,
    ):
        self.detector = detector or ConflictDetector()
        self.availability = availability or AvailabilityChecker()
        self.debounce_seconds = debounce_seconds
        self.authoritative = authoritative
        self.latest: CheckOutcome | None = None
        self._issued = 0

    @property
    def issued(self) -> int:
        return self._issued

    def is_current(self, sequence: int) -> bool:
        return sequence == self._issued

    def _evaluate(self, sequence: int, candidate: Event, events: Iterable[Event], confirmed: bool) -> CheckOutcome:
        events = list(events)
        return CheckOutcome(
            sequence=sequence,
            conflicts=tuple(self.detector.check_conflicts(candidate, events)),
            availability=tuple(self.availability.check(candidate, events)),
            confirmed=confirmed,
        )

    def _publish(self, outcome: CheckOutcome) -> CheckOutcome | None:
        if not self.is_current(outcome.sequence):
            logger.debug("Discarding superseded check #%d (latest #%d)", outcome.sequence, self._issued)
            return None
        self.latest = outcome
        return outcome

    async def check(self, candidate: Event, existing_events: Iterable[Event]) -> CheckOutcome | None:
        """Run a debounced check. Returns ``None`` if a newer check superseded it."""
        self._issued += 1
        sequence = self._issued
        existing_events = list(existing_events)

        await asyncio.sleep(self.debounce_seconds)
        if not self.is_current(sequence):
            logger.debug("Check #%d superseded during debounce", sequence)
            return None

        local = self._evaluate(sequence, candidate, existing_events, confirmed=self.authoritative is None)
        if self.authoritative is None or local.is_blocked:
            # A locally detected conflict stands without waiting for the fuller set
            return self._publish(CheckOutcome(
                sequence=sequence,
                conflicts=local.conflicts,
                availability=local.availability,
                confirmed=True,
            ))

        self._publish(local)
        fuller = await self.authoritative(candidate)
        if not self.is_current(sequence):
            logger.debug("Check #%d superseded during authoritative fetch", sequence)
            return None
        return self._publish(self._evaluate(sequence, candidate, fuller, confirmed=True))
