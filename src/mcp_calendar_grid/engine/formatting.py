"""Human-readable time ranges, durations and view titles in the basis offset."""

from __future__ import annotations

from datetime import datetime

from .navigator import ViewType
from .timebasis import SUNDAY, TimeBasis

TIME_STYLES = ("short", "long", "duration")


def duration_minutes(start: datetime, end: datetime) -> int:
    return round((end - start).total_seconds() / 60)


def format_duration(minutes: int) -> str:
    """``45m``, ``2h`` or ``1h 30m``."""
    hours, rest = divmod(minutes, 60)
    if hours == 0:
        return f"{rest}m"
    if rest == 0:
        return f"{hours}h"
    return f"{hours}h {rest}m"


def format_time_range(
    start: datetime,
    end: datetime,
    basis: TimeBasis | None = None,
    style: str = "short",
) -> str:
    basis = basis or TimeBasis()
    if style not in TIME_STYLES:
        raise ValueError(f"Unknown time range style '{style}'. Must be one of: {TIME_STYLES}")
    if style == "duration":
        return format_duration(duration_minutes(start, end))

    local_start = basis.localize(start)
    local_end = basis.localize(end)
    end_text = f"{local_end:%H:%M}"
    if style == "long":
        return f"{local_start:%a, %b} {local_start.day}, {local_start:%H:%M} - {end_text}"
    return f"{local_start:%H:%M} - {end_text}"


def view_title(
    reference: datetime,
    view: ViewType,
    basis: TimeBasis | None = None,
    week_starts_on: int = SUNDAY,
) -> str:
    """Header text for a view, e.g. ``February 2025`` or ``Jan 26 - Feb 1``."""
    basis = basis or TimeBasis()
    view = ViewType(view)
    local = basis.localize(reference)

    if view is ViewType.DAY:
        return f"{local:%A, %B} {local.day}, {local.year}"
    if view is ViewType.WEEK:
        first = basis.start_of_week(local, week_starts_on)
        last = basis.add_days(first, 6)
        if first.month == last.month:
            return f"{first:%b} {first.day} - {last.day}, {first.year}"
        return f"{first:%b} {first.day} - {last:%b} {last.day}"
    if view is ViewType.MONTH:
        return f"{local:%B %Y}"
    return str(local.year)
