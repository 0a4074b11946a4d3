"""Calendar grid construction for month, week, day and year views.

Grids are frozen dataclasses tagged with a ``GridKind`` so callers can
match on the variant instead of probing for fields::

    match grid:
        case MonthGrid(): ...
        case WeekGrid() | DayGrid(): ...
        case YearGrid(): ...

Placement rules:

* Month cells hold the events whose start date equals the cell date.
  All-day events use the calendar date they were written with; timed events
  use their start date in the basis offset.
* Week/Day views place each timed event in exactly one hourly slot, the one
  matching its start hour. Timed events whose start hour falls outside
  ``[start_hour, end_hour)`` go to ``omitted`` instead.
* An event that started before the first day of a grid but is still running
  on it is anchored to the first day, so every event intersecting the
  covered period shows up somewhere.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from enum import Enum
from typing import Iterable, Union

from .errors import InvalidViewParameters
from .models import Event, event_sort_key
from .navigator import ViewType
from .timebasis import SUNDAY, TimeBasis, parse_weekday, validate_hour_range

logger = logging.getLogger("mcp-calendar-grid")

_TICK = timedelta(microseconds=1)


class GridKind(str, Enum):
    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    YEAR = "year"


@dataclass(frozen=True)
class CalendarCell:
    """A single calendar day.

    Overflow cells of a month grid say which neighbouring month they belong
    to. ``is_past`` is only set when the grid was built with a ``now``.
    """

    date: date
    is_today: bool
    is_in_primary_period: bool
    events: tuple[Event, ...] = ()
    is_previous_period: bool = False
    is_next_period: bool = False
    is_past: bool = False

    @property
    def day_number(self) -> int:
        return self.date.day

    @property
    def is_weekend(self) -> bool:
        return self.date.weekday() >= 5


@dataclass(frozen=True)
class WeekRow:
    days: tuple[CalendarCell, ...]
    week_number: int


@dataclass(frozen=True)
class MonthGrid:
    """Full weeks covering one month. ``month`` is zero-based (0 = January)."""

    year: int
    month: int
    week_starts_on: int
    weeks: tuple[WeekRow, ...]
    kind: GridKind = field(default=GridKind.MONTH, init=False)

    @property
    def cells(self) -> tuple[CalendarCell, ...]:
        return tuple(cell for week in self.weeks for cell in week.days)

    @property
    def total_days(self) -> int:
        return len(self.weeks) * 7

    @property
    def first_day(self) -> date:
        return self.weeks[0].days[0].date

    @property
    def last_day(self) -> date:
        return self.weeks[-1].days[-1].date

    def cell_for(self, day: date) -> CalendarCell | None:
        for cell in self.cells:
            if cell.date == day:
                return cell
        return None


@dataclass(frozen=True)
class TimeSlot:
    """One hour of one day, holding the events anchored to it."""

    start: datetime
    end: datetime
    events: tuple[Event, ...] = ()

    @property
    def hour(self) -> int:
        return self.start.hour

    @property
    def is_available(self) -> bool:
        return not self.events


@dataclass(frozen=True)
class DayColumn:
    header: CalendarCell
    all_day_events: tuple[Event, ...]
    slots: tuple[TimeSlot, ...]

    @property
    def date(self) -> date:
        return self.header.date


@dataclass(frozen=True)
class _SlotGrid:
    columns: tuple[DayColumn, ...]
    start_hour: int
    end_hour: int
    omitted: tuple[Event, ...]

    @property
    def headers(self) -> tuple[CalendarCell, ...]:
        return tuple(column.header for column in self.columns)

    @property
    def first_day(self) -> date:
        return self.columns[0].date

    @property
    def last_day(self) -> date:
        return self.columns[-1].date


@dataclass(frozen=True)
class WeekGrid(_SlotGrid):
    kind: GridKind = field(default=GridKind.WEEK, init=False)


@dataclass(frozen=True)
class DayGrid(_SlotGrid):
    kind: GridKind = field(default=GridKind.DAY, init=False)

    @property
    def column(self) -> DayColumn:
        return self.columns[0]


@dataclass(frozen=True)
class YearGrid:
    year: int
    months: tuple[MonthGrid, ...]
    event_counts: tuple[int, ...]
    kind: GridKind = field(default=GridKind.YEAR, init=False)

    @property
    def total_events(self) -> int:
        return sum(self.event_counts)


Grid = Union[MonthGrid, WeekGrid, DayGrid, YearGrid]


def _validate_year(year: int) -> None:
    # One year of headroom on both sides for overflow cells
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidViewParameters("year", year, "must be an integer")
    if not MINYEAR < year < MAXYEAR:
        raise InvalidViewParameters("year", year, f"must be within {MINYEAR + 1}-{MAXYEAR - 1}")


def _validate_month(month: int) -> None:
    if isinstance(month, bool) or not isinstance(month, int):
        raise InvalidViewParameters("month", month, "must be an integer")
    if not 0 <= month <= 11:
        raise InvalidViewParameters("month", month, "must be within 0-11")


class GridBuilder:
    """Partition a date range into cells/slots and bucket events into them."""

    def __init__(
        self,
        basis: TimeBasis | None = None,
        week_starts_on: int | str = SUNDAY,
        start_hour: int = 8,
        end_hour: int = 18,
    ):
        validate_hour_range(start_hour, end_hour)
        self.basis = basis or TimeBasis()
        self.week_starts_on = parse_weekday(week_starts_on)
        self.start_hour = start_hour
        self.end_hour = end_hour

    # -- helpers ----------------------------------------------------------

    def _start_date(self, event: Event) -> date:
        if event.all_day:
            return event.start.date()
        return self.basis.local_date(event.start)

    def _span(self, event: Event) -> tuple[date, date]:
        """First and last calendar date an event occupies (inclusive)."""
        if event.all_day:
            return event.start.date(), (event.end - _TICK).date()
        return self.basis.local_date(event.start), self.basis.local_date(event.end - _TICK)

    def _bucket(self, events: Iterable[Event], first: date, last: date) -> dict[date, list[Event]]:
        buckets: dict[date, list[Event]] = defaultdict(list)
        for event in events:
            start, end = self._span(event)
            if start > last or end < first:
                continue
            buckets[max(start, first)].append(event)
        for day_events in buckets.values():
            day_events.sort(key=event_sort_key)
        return buckets

    def _today(self, now: datetime | None) -> date | None:
        return self.basis.local_date(now) if now is not None else None

    def _reference(self, reference: datetime) -> datetime:
        """``reference`` in the basis offset, rejected if its year has no room for a full grid."""
        try:
            local = self.basis.localize(reference)
        except OverflowError as e:
            raise InvalidViewParameters("reference", reference, "out of the supported date range") from e
        _validate_year(local.year)
        return local

    # -- month ------------------------------------------------------------

    def month(
        self,
        year: int,
        month: int,
        events: Iterable[Event] = (),
        now: datetime | None = None,
    ) -> MonthGrid:
        """Month grid for ``year``/``month`` where ``month`` is 0-11."""
        _validate_year(year)
        _validate_month(month)

        first_of_month = date(year, month + 1, 1)
        next_month = date(year + 1, 1, 1) if month == 11 else date(year, month + 2, 1)
        last_of_month = next_month - timedelta(days=1)

        grid_start = first_of_month - timedelta(days=(first_of_month.weekday() - self.week_starts_on) % 7)
        covered = (last_of_month - grid_start).days + 1
        rows = -(-covered // 7)
        grid_end = grid_start + timedelta(days=rows * 7 - 1)

        buckets = self._bucket(events, grid_start, grid_end)
        today = self._today(now)

        weeks = []
        for row in range(rows):
            days = []
            for offset in range(7):
                day = grid_start + timedelta(days=row * 7 + offset)
                days.append(CalendarCell(
                    date=day,
                    is_today=day == today,
                    is_in_primary_period=first_of_month <= day <= last_of_month,
                    events=tuple(buckets.get(day, ())),
                    is_previous_period=day < first_of_month,
                    is_next_period=day > last_of_month,
                    is_past=today is not None and day < today,
                ))
            weeks.append(WeekRow(days=tuple(days), week_number=row))

        logger.debug(
            "Month grid %04d-%02d: %d rows from %s, %d day(s) with events",
            year, month + 1, rows, grid_start, len(buckets),
        )
        return MonthGrid(year=year, month=month, week_starts_on=self.week_starts_on, weeks=tuple(weeks))

    # -- week / day -------------------------------------------------------

    def _columns(
        self, days: list[date], events: Iterable[Event], now: datetime | None
    ) -> tuple[tuple[DayColumn, ...], tuple[Event, ...]]:
        buckets = self._bucket(events, days[0], days[-1])
        today = self._today(now)
        window_start = self.basis.at_date(days[0])

        columns = []
        omitted: list[Event] = []
        for day in days:
            day_events = buckets.get(day, [])
            all_day = []
            by_hour: dict[int, list[Event]] = defaultdict(list)
            for event in day_events:
                if event.all_day:
                    all_day.append(event)
                    continue
                anchor = max(self.basis.localize(event.start), window_start)
                if self.start_hour <= anchor.hour < self.end_hour:
                    by_hour[anchor.hour].append(event)
                else:
                    omitted.append(event)

            slots = tuple(
                TimeSlot(
                    start=self.basis.at_date(day, hour),
                    end=self.basis.at_date(day, hour + 1),
                    events=tuple(by_hour.get(hour, ())),
                )
                for hour in range(self.start_hour, self.end_hour)
            )
            header = CalendarCell(
                date=day,
                is_today=day == today,
                is_in_primary_period=True,
                events=tuple(day_events),
                is_past=today is not None and day < today,
            )
            columns.append(DayColumn(header=header, all_day_events=tuple(all_day), slots=slots))

        omitted.sort(key=event_sort_key)
        if omitted:
            logger.debug("%d event(s) outside %02d:00-%02d:00", len(omitted), self.start_hour, self.end_hour)
        return tuple(columns), tuple(omitted)

    def week(
        self,
        reference: datetime,
        events: Iterable[Event] = (),
        now: datetime | None = None,
    ) -> WeekGrid:
        first = self.basis.start_of_week(self._reference(reference), self.week_starts_on).date()
        days = [first + timedelta(days=i) for i in range(7)]
        columns, omitted = self._columns(days, events, now)
        return WeekGrid(columns=columns, start_hour=self.start_hour, end_hour=self.end_hour, omitted=omitted)

    def day(
        self,
        reference: datetime,
        events: Iterable[Event] = (),
        now: datetime | None = None,
    ) -> DayGrid:
        columns, omitted = self._columns([self._reference(reference).date()], events, now)
        return DayGrid(columns=columns, start_hour=self.start_hour, end_hour=self.end_hour, omitted=omitted)

    # -- year -------------------------------------------------------------

    def year(
        self,
        year: int,
        events: Iterable[Event] = (),
        now: datetime | None = None,
    ) -> YearGrid:
        _validate_year(year)
        events = list(events)
        months = tuple(self.month(year, month, events, now) for month in range(12))

        counts = [0] * 12
        for event in events:
            start = self._start_date(event)
            if start.year == year:
                counts[start.month - 1] += 1

        return YearGrid(year=year, months=months, event_counts=tuple(counts))

    # -- dispatch ---------------------------------------------------------

    def build(
        self,
        reference: datetime,
        view: ViewType,
        events: Iterable[Event] = (),
        now: datetime | None = None,
    ) -> Grid:
        view = ViewType(view)
        local = self._reference(reference)
        if view is ViewType.MONTH:
            return self.month(local.year, local.month - 1, events, now)
        if view is ViewType.WEEK:
            return self.week(local, events, now)
        if view is ViewType.DAY:
            return self.day(local, events, now)
        return self.year(local.year, events, now)
