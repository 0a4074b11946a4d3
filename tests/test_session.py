"""Tests for debounced, superseding conflict check sessions."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from mcp_calendar_grid.config import EngineSettings
from mcp_calendar_grid.engine.conflicts import ConflictDetector, ConflictKind
from mcp_calendar_grid.engine.models import Event, Interval
from mcp_calendar_grid.session import ConflictCheckSession

JST = timezone(timedelta(hours=9))


def _make_event(id: str, start_hour: float, end_hour: float, attendees=(), title: str = "Meeting") -> Event:
    base = datetime(2025, 2, 4, tzinfo=JST)
    return Event(
        id=id,
        title=title,
        interval=Interval(base + timedelta(hours=start_hour), base + timedelta(hours=end_hour)),
        attendee_ids=attendees,
    )


class TestConflictCheckSession:
    async def test_single_check(self):
        session = ConflictCheckSession(debounce_seconds=0)
        outcome = await session.check(_make_event("new", 9, 10), [_make_event("old", 9.5, 10.5)])

        assert outcome is not None
        assert outcome.sequence == 1
        assert outcome.confirmed
        assert outcome.has_conflict and outcome.is_blocked
        assert [r.kind for r in outcome.conflicts] == [ConflictKind.OVERLAP]
        assert session.latest is outcome

    async def test_clean_check(self):
        session = ConflictCheckSession(debounce_seconds=0)
        outcome = await session.check(_make_event("new", 9, 10, attendees=["alice"]), [])
        assert not outcome.has_conflict
        assert not outcome.is_blocked
        assert [a.attendee_id for a in outcome.availability] == ["alice"]

    async def test_newer_check_supersedes(self):
        session = ConflictCheckSession(debounce_seconds=0.01)
        first, second = await asyncio.gather(
            session.check(_make_event("new", 9, 10), [_make_event("old", 9, 10)]),
            session.check(_make_event("new", 11, 12), [_make_event("old", 9, 10)]),
        )
        assert first is None
        assert second.sequence == 2
        assert not second.has_conflict
        assert session.latest is second
        assert session.issued == 2

    async def test_sequential_checks_both_publish(self):
        session = ConflictCheckSession(debounce_seconds=0)
        first = await session.check(_make_event("new", 9, 10), [])
        second = await session.check(_make_event("new", 10, 11), [])
        assert (first.sequence, second.sequence) == (1, 2)
        assert session.latest is second

    async def test_unavailable_attendee_blocks(self):
        session = ConflictCheckSession(ConflictDetector(allow_adjacent=True), debounce_seconds=0)
        candidate = _make_event("new", 9, 10, attendees=["alice"])
        outcome = await session.check(candidate, [_make_event("busy", 9, 9.5, attendees=["alice"])])
        assert outcome.is_blocked
        assert not outcome.availability[0].is_available

    async def test_adjacent_warning_does_not_block(self):
        session = ConflictCheckSession(ConflictDetector(allow_adjacent=False), debounce_seconds=0)
        outcome = await session.check(_make_event("new", 10, 11), [_make_event("old", 9, 10)])
        assert outcome.has_conflict
        assert not outcome.is_blocked


class TestTwoTierCheck:
    async def test_local_conflict_skips_authoritative(self):
        source = AsyncMock(return_value=[])
        session = ConflictCheckSession(debounce_seconds=0, authoritative=source)
        outcome = await session.check(_make_event("new", 9, 10), [_make_event("old", 9, 10)])

        assert outcome.confirmed
        assert outcome.is_blocked
        source.assert_not_awaited()

    async def test_provisional_then_confirmed(self):
        candidate = _make_event("new", 9, 10)
        seen = []

        async def fuller_set(event):
            seen.append(session.latest)
            return [_make_event("remote", 9.5, 10.5, title="Board meeting")]

        session = ConflictCheckSession(debounce_seconds=0, authoritative=fuller_set)
        outcome = await session.check(candidate, [])

        [provisional] = seen
        assert provisional.sequence == 1
        assert not provisional.confirmed
        assert not provisional.has_conflict

        assert outcome.confirmed
        assert [r.with_event.id for r in outcome.conflicts] == ["remote"]
        assert session.latest is outcome

    async def test_authoritative_called_with_candidate(self):
        source = AsyncMock(return_value=[])
        session = ConflictCheckSession(debounce_seconds=0, authoritative=source)
        candidate = _make_event("new", 9, 10)
        outcome = await session.check(candidate, [])

        source.assert_awaited_once_with(candidate)
        assert outcome.confirmed and not outcome.has_conflict

    async def test_superseded_during_authoritative_fetch(self):
        gate = asyncio.Event()

        async def slow_source(event):
            await gate.wait()
            return []

        session = ConflictCheckSession(debounce_seconds=0, authoritative=slow_source)
        candidate = _make_event("new", 9, 10)
        first = asyncio.create_task(session.check(candidate, []))
        while session.latest is None:
            await asyncio.sleep(0)

        second = asyncio.create_task(session.check(candidate, []))
        await asyncio.sleep(0)
        gate.set()

        assert await first is None
        outcome = await second
        assert outcome.sequence == 2
        assert outcome.confirmed
        assert session.latest is outcome


class TestSessionSettings:
    def test_debounce_from_settings(self):
        session = EngineSettings(debounce_ms=500, allow_adjacent=False).check_session()
        assert session.debounce_seconds == 0.5
        assert session.detector.allow_adjacent is False
        assert session.authoritative is None
