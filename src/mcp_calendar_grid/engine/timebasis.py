"""Fixed-offset date construction and comparison primitives.

Every other engine component goes through a ``TimeBasis`` for "same day",
"start of week", "start of month" and friends, so that all calendar logic
happens in one fixed UTC offset (Japan Standard Time unless configured
otherwise) and never in whatever local timezone the host process runs in.

The basis never reads the wall clock. Anything that depends on "now" takes
it as an argument.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from dateutil.relativedelta import relativedelta

from .errors import InvalidViewParameters

JST_OFFSET = timedelta(hours=9)

# Python weekday numbering: Monday == 0 ... Sunday == 6
MONDAY = 0
SATURDAY = 5
SUNDAY = 6

WEEKDAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

_OFFSET_RE = re.compile(r"^([+-])(\d{1,2}):?(\d{2})$")


def parse_weekday(value: int | str) -> int:
    """Resolve a weekday given as ``0``-``6`` (Monday first) or an English name."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid weekday: {value!r}")
    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise ValueError(f"Invalid weekday: {value!r}. Must be 0 (Monday) to 6 (Sunday)")
    key = str(value).strip().lower()
    if key not in WEEKDAY_NAMES:
        raise ValueError(f"Invalid weekday: {value!r}. Must be one of: {list(WEEKDAY_NAMES)}")
    return WEEKDAY_NAMES[key]


def parse_utc_offset(value: str) -> timedelta:
    """Parse ``"+09:00"``, ``"-0530"`` or ``"Z"``/``"UTC"`` into a timedelta."""
    text = str(value).strip()
    if text.upper() in ("Z", "UTC"):
        return timedelta(0)
    match = _OFFSET_RE.match(text)
    if not match:
        raise ValueError(f"Invalid UTC offset: {value!r}. Expected e.g. '+09:00'")
    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if int(minutes) >= 60 or delta >= timedelta(hours=24):
        raise ValueError(f"Invalid UTC offset: {value!r}")
    return -delta if sign == "-" else delta


def format_utc_offset(offset: timedelta) -> str:
    total = int(offset.total_seconds()) // 60
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


@dataclass(frozen=True)
class TimeBasis:
    """Calendar arithmetic anchored to a single fixed UTC offset."""

    offset: timedelta = JST_OFFSET

    def __post_init__(self) -> None:
        if abs(self.offset) >= timedelta(hours=24):
            raise ValueError(f"UTC offset out of range: {self.offset}")

    @classmethod
    def from_string(cls, offset: str) -> TimeBasis:
        return cls(parse_utc_offset(offset))

    @property
    def tz(self) -> timezone:
        return timezone(self.offset)

    # -- construction -----------------------------------------------------

    def localize(self, value: datetime) -> datetime:
        """Express ``value`` in the basis offset.

        Naive datetimes are taken as wall-clock time in the basis offset;
        aware ones are converted.
        """
        if value.tzinfo is None:
            return value.replace(tzinfo=self.tz)
        return value.astimezone(self.tz)

    def from_parts(
        self,
        year: int,
        month: int,
        day: int = 1,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        microsecond: int = 0,
    ) -> datetime:
        """Build an instant from wall-clock parts in the basis offset (month 1-12)."""
        return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=self.tz)

    def at_date(self, day: date, hour: int = 0) -> datetime:
        """Midnight (plus ``hour`` hours) of a calendar date in the basis offset."""
        return datetime.combine(day, time(), tzinfo=self.tz) + timedelta(hours=hour)

    def local_date(self, value: datetime) -> date:
        return self.localize(value).date()

    # -- boundaries -------------------------------------------------------

    def start_of_day(self, value: datetime) -> datetime:
        return self.at_date(self.local_date(value))

    def end_of_day(self, value: datetime) -> datetime:
        return self.start_of_day(value) + timedelta(days=1) - timedelta(microseconds=1)

    def start_of_week(self, value: datetime, week_starts_on: int = SUNDAY) -> datetime:
        day = self.start_of_day(value)
        back = (day.weekday() - week_starts_on) % 7
        return day - timedelta(days=back)

    def start_of_month(self, value: datetime) -> datetime:
        return self.start_of_day(value).replace(day=1)

    def end_of_month(self, value: datetime) -> datetime:
        return self.start_of_month(value) + relativedelta(months=1) - timedelta(microseconds=1)

    def start_of_year(self, value: datetime) -> datetime:
        return self.start_of_day(value).replace(month=1, day=1)

    # -- arithmetic -------------------------------------------------------

    def add_days(self, value: datetime, days: int) -> datetime:
        return self.localize(value) + timedelta(days=days)

    def add_months(self, value: datetime, months: int) -> datetime:
        # relativedelta clamps the day: Jan 31 + 1 month -> Feb 28/29
        return self.localize(value) + relativedelta(months=months)

    def add_years(self, value: datetime, years: int) -> datetime:
        return self.localize(value) + relativedelta(years=years)

    # -- predicates -------------------------------------------------------

    def is_same_day(self, a: datetime, b: datetime) -> bool:
        return self.local_date(a) == self.local_date(b)

    def is_weekend(self, value: date | datetime) -> bool:
        day = self.local_date(value) if isinstance(value, datetime) else value
        return day.weekday() in (SATURDAY, SUNDAY)

    def today(self, now: datetime) -> datetime:
        """Start of the current day for an injected ``now``."""
        return self.start_of_day(now)

    # -- slots ------------------------------------------------------------

    def time_slots(
        self,
        day: date | datetime,
        interval_minutes: int = 30,
        start_hour: int = 8,
        end_hour: int = 18,
    ) -> list[datetime]:
        """Slot start instants for one calendar day, ``[start_hour, end_hour)``."""
        validate_hour_range(start_hour, end_hour)
        if interval_minutes <= 0:
            raise InvalidViewParameters("interval_minutes", interval_minutes, "must be positive")
        local_day = self.local_date(day) if isinstance(day, datetime) else day
        slot = self.at_date(local_day, start_hour)
        end = self.at_date(local_day, end_hour)
        step = timedelta(minutes=interval_minutes)

        out: list[datetime] = []
        while slot < end:
            out.append(slot)
            slot += step
        return out


def validate_hour_range(start_hour: int, end_hour: int) -> None:
    if not 0 <= start_hour <= 23:
        raise InvalidViewParameters("start_hour", start_hour, "must be within 0-23")
    if not 1 <= end_hour <= 24:
        raise InvalidViewParameters("end_hour", end_hour, "must be within 1-24")
    if end_hour <= start_hour:
        raise InvalidViewParameters(
            "end_hour", end_hour, f"must be greater than start_hour ({start_hour})"
        )
