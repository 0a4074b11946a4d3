"""Next / previous / today navigation per calendar view."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from .models import Interval
from .timebasis import SUNDAY, TimeBasis


class ViewType(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Direction(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"
    TODAY = "today"


class Navigator:
    """Pure functions of ``(date, view, direction)``.

    Month steps clamp the day of month (Jan 31 -> Feb 28) instead of
    carrying the overflow into the following month. Year steps keep month
    and day, clamping Feb 29 to Feb 28 in non-leap years.
    """

    def __init__(self, basis: TimeBasis | None = None):
        self.basis = basis or TimeBasis()

    def _step(self, value: datetime, view: ViewType, sign: int) -> datetime:
        view = ViewType(view)
        if view is ViewType.DAY:
            return self.basis.add_days(value, sign)
        if view is ViewType.WEEK:
            return self.basis.add_days(value, 7 * sign)
        if view is ViewType.MONTH:
            return self.basis.add_months(value, sign)
        return self.basis.add_years(value, sign)

    def next(self, value: datetime, view: ViewType) -> datetime:
        return self._step(value, view, 1)

    def previous(self, value: datetime, view: ViewType) -> datetime:
        return self._step(value, view, -1)

    def today(self, now: datetime) -> datetime:
        return self.basis.today(now)

    def navigate(
        self,
        value: datetime,
        view: ViewType,
        direction: Direction,
        now: datetime | None = None,
    ) -> datetime:
        direction = Direction(direction)
        if direction is Direction.NEXT:
            return self.next(value, view)
        if direction is Direction.PREVIOUS:
            return self.previous(value, view)
        if now is None:
            raise ValueError("navigating to today requires an explicit 'now'")
        return self.today(now)

    def window(self, value: datetime, view: ViewType, week_starts_on: int = SUNDAY) -> Interval:
        """The nominal period a view shows for ``value`` (no overflow cells)."""
        view = ViewType(view)
        basis = self.basis
        if view is ViewType.DAY:
            start = basis.start_of_day(value)
            return Interval(start, start + timedelta(days=1))
        if view is ViewType.WEEK:
            start = basis.start_of_week(value, week_starts_on)
            return Interval(start, start + timedelta(days=7))
        if view is ViewType.MONTH:
            start = basis.start_of_month(value)
            return Interval(start, basis.add_months(start, 1))
        start = basis.start_of_year(value)
        return Interval(start, basis.add_years(start, 1))
