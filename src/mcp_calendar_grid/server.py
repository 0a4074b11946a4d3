#!/usr/bin/env python3
"""
mcp-calendar-grid — Calendar grid and meeting conflict MCP server.

Exposes the pure calendar engine (grids, navigation, conflict and
availability checks) as MCP tools. Event collections are passed by value in
each call; the server stores no events.

Environment variables:
    CALENDAR_GRID_CONFIG — Path to calendar_grid.yaml (default: /config/calendar_grid.yaml)
"""

import logging
import sys
from dataclasses import asdict
from datetime import datetime
from typing import Any

from dateutil.parser import parse as parse_dt
from mcp.server.fastmcp import FastMCP

from .config import EngineSettings, load_config
from .engine.availability import AvailabilityResult
from .engine.conflicts import ConflictReport, blocking
from .engine.errors import CalendarEngineError
from .engine.formatting import format_time_range, view_title
from .engine.grid import CalendarCell, DayColumn, DayGrid, Grid, MonthGrid, WeekGrid, YearGrid
from .engine.meetings import validate_meeting as validate_meeting_fields
from .engine.models import Event, Interval
from .engine.navigator import Direction, ViewType
from .engine.timebasis import TimeBasis, format_utc_offset

# MCP stdio servers must NEVER write to stdout; log to stderr only.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("mcp-calendar-grid")


# ---------------------------------------------------------------------------
# Module-level state
# ---------------------------------------------------------------------------

_settings: EngineSettings = EngineSettings()


def _basis() -> TimeBasis:
    return _settings.basis()


def _error(e: Exception) -> dict[str, Any]:
    """Error dict for a rejected tool call."""
    return {"error": str(e), "kind": getattr(e, "kind", "invalid_input")}


# ---------------------------------------------------------------------------
# Transport boundary: parsing and serialization
# ---------------------------------------------------------------------------

def _parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 date or datetime into the configured offset.

    Values without an offset are read as wall-clock time in that offset.
    """
    return _basis().localize(parse_dt(value))


def _now(value: str) -> datetime:
    if value:
        return _parse_datetime(value)
    return datetime.now(_basis().tz)


def _event_from_dict(raw: dict[str, Any]) -> Event:
    """Build an Event from a transport snapshot dict."""
    if not isinstance(raw, dict):
        raise ValueError(f"Event must be an object, got {type(raw).__name__}")
    for key in ("start", "end"):
        if not raw.get(key):
            raise ValueError(f"Event '{raw.get('id', '')}' missing '{key}'")
    try:
        start = _parse_datetime(str(raw["start"]))
        end = _parse_datetime(str(raw["end"]))
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Event '{raw.get('id', '')}': invalid date ({e})") from e

    attendees = raw.get("attendee_ids") or []
    if not isinstance(attendees, list):
        raise ValueError(f"Event '{raw.get('id', '')}': 'attendee_ids' must be a list")

    return Event(
        id=str(raw.get("id", "")),
        title=str(raw.get("title", "")),
        interval=Interval(start, end),
        attendee_ids=frozenset(str(a) for a in attendees),
        all_day=bool(raw.get("all_day", False)),
        description=str(raw.get("description", "")),
    )


def _events_from_dicts(raw_events: list[dict[str, Any]] | None) -> list[Event]:
    events = [_event_from_dict(raw) for raw in raw_events or []]
    seen: set[str] = set()
    for event in events:
        if not event.id:
            raise ValueError(f"Event '{event.title}' missing 'id'")
        if event.id in seen:
            raise ValueError(f"Duplicate event id: '{event.id}'")
        seen.add(event.id)
    return events


def _event_to_dict(event: Event) -> dict[str, Any]:
    """Convert Event to JSON-friendly dict."""
    return {
        "id": event.id,
        "title": event.title,
        "start": event.start.isoformat(),
        "end": event.end.isoformat(),
        "attendee_ids": sorted(event.attendee_ids),
        "all_day": event.all_day,
        "description": event.description,
    }


def _cell_to_dict(cell: CalendarCell) -> dict[str, Any]:
    return {
        "date": cell.date.isoformat(),
        "day_number": cell.day_number,
        "is_today": cell.is_today,
        "is_in_primary_period": cell.is_in_primary_period,
        "is_previous_period": cell.is_previous_period,
        "is_next_period": cell.is_next_period,
        "is_past": cell.is_past,
        "is_weekend": cell.is_weekend,
        "events": [_event_to_dict(e) for e in cell.events],
    }


def _column_to_dict(column: DayColumn) -> dict[str, Any]:
    return {
        "header": _cell_to_dict(column.header),
        "all_day_events": [_event_to_dict(e) for e in column.all_day_events],
        "slots": [
            {
                "hour": slot.hour,
                "start": slot.start.isoformat(),
                "end": slot.end.isoformat(),
                "is_available": slot.is_available,
                "events": [_event_to_dict(e) for e in slot.events],
            }
            for slot in column.slots
        ],
    }


def _month_to_dict(grid: MonthGrid) -> dict[str, Any]:
    return {
        "kind": grid.kind.value,
        "year": grid.year,
        "month": grid.month,
        "total_days": grid.total_days,
        "weeks": [
            {"week_number": week.week_number, "days": [_cell_to_dict(c) for c in week.days]}
            for week in grid.weeks
        ],
    }


def _grid_to_dict(grid: Grid) -> dict[str, Any]:
    match grid:
        case MonthGrid():
            return _month_to_dict(grid)
        case WeekGrid() | DayGrid():
            return {
                "kind": grid.kind.value,
                "start_hour": grid.start_hour,
                "end_hour": grid.end_hour,
                "days": [_column_to_dict(c) for c in grid.columns],
                "omitted": [_event_to_dict(e) for e in grid.omitted],
            }
        case YearGrid():
            return {
                "kind": grid.kind.value,
                "year": grid.year,
                "event_counts": list(grid.event_counts),
                "months": [_month_to_dict(m) for m in grid.months],
            }
    raise TypeError(f"Unknown grid type: {type(grid).__name__}")


def _report_to_dict(report: ConflictReport) -> dict[str, Any]:
    return {
        "kind": report.kind.value,
        "severity": report.severity.value,
        "message": report.message,
        "event": _event_to_dict(report.with_event),
    }


def _availability_to_dict(result: AvailabilityResult) -> dict[str, Any]:
    return {
        "attendee_id": result.attendee_id,
        "is_available": result.is_available,
        "conflicting_events": [_event_to_dict(e) for e in result.conflicting_events],
    }


# ---------------------------------------------------------------------------
# MCP Server + Tools
# ---------------------------------------------------------------------------

mcp = FastMCP("calendar-grid")


@mcp.tool()
async def get_settings() -> dict:
    """Show the engine configuration (offset, week start, hour range, adjacency policy)."""
    settings = asdict(_settings)
    settings["utc_offset"] = format_utc_offset(_basis().offset)
    return {"settings": settings}


@mcp.tool()
async def build_grid(
    view: str = "month",
    date: str = "",
    events: list[dict] | None = None,
    now: str = "",
) -> dict:
    """Build a calendar grid for a view and bucket the given events into it.

    Args:
        view: "day", "week", "month" or "year".
        date: Reference date (ISO 8601). Default: today.
        events: Event snapshots: {"id", "title", "start", "end", "attendee_ids", "all_day"}.
        now: Current instant used for "today" highlighting (ISO 8601). Default: server clock.
    """
    try:
        view_type = ViewType(view)
    except ValueError:
        return {"error": f"Unknown view '{view}'. Must be one of: {[v.value for v in ViewType]}"}

    try:
        current = _now(now)
        reference = _parse_datetime(date) if date else current
    except (ValueError, OverflowError):
        return {"error": f"Invalid date: {date or now}"}

    try:
        parsed = _events_from_dicts(events)
        grid = _settings.grid_builder().build(reference, view_type, parsed, now=current)
    except (CalendarEngineError, ValueError, OverflowError) as e:
        return _error(e)

    result = _grid_to_dict(grid)
    result["title"] = view_title(reference, view_type, _basis(), _settings.week_starts_on)
    result["count"] = len(parsed)
    return result


@mcp.tool()
async def navigate(
    date: str = "",
    view: str = "month",
    direction: str = "next",
    now: str = "",
) -> dict:
    """Move a reference date to the next/previous period of a view, or to today.

    Args:
        date: Current reference date (ISO 8601). Default: today.
        view: "day", "week", "month" or "year".
        direction: "next", "previous" or "today".
        now: Current instant for "today" (ISO 8601). Default: server clock.
    """
    try:
        view_type = ViewType(view)
        step = Direction(direction)
    except ValueError as e:
        return {"error": str(e)}

    try:
        current = _now(now)
        reference = _parse_datetime(date) if date else current
    except (ValueError, OverflowError):
        return {"error": f"Invalid date: {date or now}"}

    navigator = _settings.navigator()
    try:
        target = navigator.navigate(reference, view_type, step, now=current)
        window = navigator.window(target, view_type, _settings.week_starts_on)
        title = view_title(target, view_type, _basis(), _settings.week_starts_on)
    except (CalendarEngineError, ValueError, OverflowError) as e:
        return _error(e)

    return {
        "date": target.isoformat(),
        "view": view_type.value,
        "title": title,
        "window": {"start": window.start.isoformat(), "end": window.end.isoformat()},
    }


@mcp.tool()
async def check_conflicts(
    candidate: dict,
    events: list[dict] | None = None,
    allow_adjacent: bool | None = None,
) -> dict:
    """Check a proposed or edited meeting against existing meetings.

    Args:
        candidate: The meeting to check (same shape as an event; may reuse an existing id when editing).
        events: Existing event snapshots.
        allow_adjacent: Override the configured policy for back-to-back meetings.
    """
    try:
        proposed = _event_from_dict(candidate)
        existing = _events_from_dicts(events)
    except (CalendarEngineError, ValueError) as e:
        return _error(e)

    reports = _settings.conflict_detector().check_conflicts(proposed, existing, allow_adjacent)
    return {
        "candidate": _event_to_dict(proposed),
        "time": format_time_range(proposed.start, proposed.end, _basis(), "long"),
        "has_conflict": bool(reports),
        "blocking": bool(blocking(reports)),
        "conflicts": [_report_to_dict(r) for r in reports],
    }


@mcp.tool()
async def check_availability(
    candidate: dict,
    events: list[dict] | None = None,
    attendee_ids: list[str] | None = None,
) -> dict:
    """Check which attendees are free for a meeting's time range.

    Args:
        candidate: The meeting to check.
        events: Existing event snapshots with their attendee_ids.
        attendee_ids: Attendees to check. Default: the candidate's attendees.
    """
    try:
        proposed = _event_from_dict(candidate)
        existing = _events_from_dicts(events)
    except (CalendarEngineError, ValueError) as e:
        return _error(e)

    checker = _settings.availability_checker()
    results = checker.check(proposed, existing, attendee_ids)
    return {
        "all_available": all(r.is_available for r in results),
        "unavailable": checker.unavailable(results),
        "attendees": [_availability_to_dict(r) for r in results],
    }


@mcp.tool()
async def validate_meeting(
    title: str = "",
    start: str = "",
    end: str = "",
    description: str = "",
    now: str = "",
) -> dict:
    """Validate meeting form fields. Returns blocking errors and non-blocking warnings.

    Args:
        title: Meeting title.
        start: Start date/time (ISO 8601).
        end: End date/time (ISO 8601).
        description: Meeting description (optional).
        now: Current instant for the "in the past" warning (ISO 8601). Default: server clock.
    """
    parsed: dict[str, datetime | None] = {"start": None, "end": None}
    for key, value in (("start", start), ("end", end)):
        if value:
            try:
                parsed[key] = _parse_datetime(value)
            except (ValueError, OverflowError):
                return {"error": f"Invalid {key} date: {value}"}

    try:
        current = _now(now)
    except (ValueError, OverflowError):
        return {"error": f"Invalid now: {now}"}

    result = validate_meeting_fields(
        title, parsed["start"], parsed["end"], description, now=current, basis=_basis()
    )
    return {"is_valid": result.is_valid, "errors": result.errors, "warnings": result.warnings}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    """Entry point for console script."""
    global _settings

    _settings = load_config()
    logger.info(
        "Engine settings: offset=%s week_starts_on=%d hours=%02d-%02d allow_adjacent=%s",
        _settings.utc_offset, _settings.week_starts_on,
        _settings.start_hour, _settings.end_hour, _settings.allow_adjacent,
    )
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
