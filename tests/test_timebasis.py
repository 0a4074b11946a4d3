"""Tests for fixed-offset date primitives."""

from datetime import date, datetime, timedelta, timezone

import pytest

from mcp_calendar_grid.engine.errors import InvalidViewParameters
from mcp_calendar_grid.engine.timebasis import (
    MONDAY,
    SUNDAY,
    TimeBasis,
    format_utc_offset,
    parse_utc_offset,
    parse_weekday,
)

JST = timezone(timedelta(hours=9))
UTC = timezone.utc


def _jst(*args: int) -> datetime:
    return datetime(*args, tzinfo=JST)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

class TestParsing:
    def test_parse_offsets(self):
        assert parse_utc_offset("+09:00") == timedelta(hours=9)
        assert parse_utc_offset("-05:30") == -timedelta(hours=5, minutes=30)
        assert parse_utc_offset("+0100") == timedelta(hours=1)
        assert parse_utc_offset("Z") == timedelta(0)
        assert parse_utc_offset("utc") == timedelta(0)

    @pytest.mark.parametrize("value", ["0900", "+24:00", "+09:75", "JST", ""])
    def test_parse_offset_invalid(self, value):
        with pytest.raises(ValueError):
            parse_utc_offset(value)

    def test_format_offset(self):
        assert format_utc_offset(timedelta(hours=9)) == "+09:00"
        assert format_utc_offset(-timedelta(hours=5, minutes=30)) == "-05:30"
        assert format_utc_offset(timedelta(0)) == "+00:00"

    def test_parse_weekday(self):
        assert parse_weekday("Monday") == MONDAY
        assert parse_weekday(" sunday ") == SUNDAY
        assert parse_weekday(3) == 3

    @pytest.mark.parametrize("value", [7, -1, "funday", True])
    def test_parse_weekday_invalid(self, value):
        with pytest.raises(ValueError):
            parse_weekday(value)

    def test_basis_from_string(self):
        assert TimeBasis.from_string("+09:00") == TimeBasis()
        assert TimeBasis.from_string("Z").offset == timedelta(0)


# ---------------------------------------------------------------------------
# Construction and boundaries
# ---------------------------------------------------------------------------

class TestBoundaries:
    def test_localize_naive_is_wall_time(self):
        basis = TimeBasis()
        local = basis.localize(datetime(2025, 2, 1, 9, 30))
        assert local == _jst(2025, 2, 1, 9, 30)
        assert local.utcoffset() == timedelta(hours=9)

    def test_localize_converts_aware(self):
        basis = TimeBasis()
        local = basis.localize(datetime(2025, 2, 1, 16, 0, tzinfo=UTC))
        assert (local.day, local.hour) == (2, 1)

    def test_from_parts(self):
        assert TimeBasis().from_parts(2025, 2, 1, 9) == _jst(2025, 2, 1, 9)

    def test_start_of_day_uses_offset(self):
        basis = TimeBasis()
        start = basis.start_of_day(datetime(2025, 2, 1, 16, 0, tzinfo=UTC))
        assert start == _jst(2025, 2, 2)

    def test_start_of_day_other_offset(self):
        basis = TimeBasis(timedelta(0))
        start = basis.start_of_day(datetime(2025, 2, 1, 16, 0, tzinfo=UTC))
        assert start == datetime(2025, 2, 1, tzinfo=UTC)

    def test_end_of_day(self):
        end = TimeBasis().end_of_day(_jst(2025, 2, 1, 12))
        assert end == _jst(2025, 2, 1, 23, 59, 59, 999999)

    def test_start_of_week_sunday(self):
        # 2025-02-05 is a Wednesday
        assert TimeBasis().start_of_week(_jst(2025, 2, 5, 15), SUNDAY) == _jst(2025, 2, 2)

    def test_start_of_week_monday(self):
        assert TimeBasis().start_of_week(_jst(2025, 2, 5, 15), MONDAY) == _jst(2025, 2, 3)

    def test_start_of_week_on_sunday_with_monday_start(self):
        assert TimeBasis().start_of_week(_jst(2025, 2, 2, 10), MONDAY) == _jst(2025, 1, 27)

    def test_start_and_end_of_month(self):
        basis = TimeBasis()
        assert basis.start_of_month(_jst(2024, 2, 10, 8)) == _jst(2024, 2, 1)
        assert basis.end_of_month(_jst(2024, 2, 10, 8)) == _jst(2024, 2, 29, 23, 59, 59, 999999)

    def test_start_of_year(self):
        assert TimeBasis().start_of_year(_jst(2025, 7, 4, 8)) == _jst(2025, 1, 1)

    def test_offset_out_of_range(self):
        with pytest.raises(ValueError):
            TimeBasis(timedelta(hours=24))


# ---------------------------------------------------------------------------
# Arithmetic and predicates
# ---------------------------------------------------------------------------

class TestArithmetic:
    def test_add_days_crosses_year(self):
        assert TimeBasis().add_days(_jst(2024, 12, 31, 10), 1) == _jst(2025, 1, 1, 10)

    def test_add_months_clamps(self):
        basis = TimeBasis()
        assert basis.add_months(_jst(2025, 1, 31), 1) == _jst(2025, 2, 28)
        assert basis.add_months(_jst(2024, 1, 31), 1) == _jst(2024, 2, 29)
        assert basis.add_months(_jst(2025, 3, 31), -1) == _jst(2025, 2, 28)

    def test_add_months_crosses_year(self):
        assert TimeBasis().add_months(_jst(2024, 12, 15), 1) == _jst(2025, 1, 15)

    def test_add_years_leap_day(self):
        assert TimeBasis().add_years(_jst(2024, 2, 29), 1) == _jst(2025, 2, 28)

    def test_is_same_day_in_offset(self):
        a = datetime(2025, 2, 1, 23, 30, tzinfo=UTC)  # 08:30 JST on Feb 2
        b = _jst(2025, 2, 2, 9, 30)  # 00:30 UTC on Feb 2
        assert TimeBasis().is_same_day(a, b)
        assert not TimeBasis(timedelta(0)).is_same_day(a, b)

    def test_is_weekend(self):
        basis = TimeBasis()
        assert basis.is_weekend(date(2025, 2, 1))
        assert basis.is_weekend(date(2025, 2, 2))
        assert not basis.is_weekend(date(2025, 2, 3))
        # Friday 20:00 UTC is Saturday morning in JST
        assert basis.is_weekend(datetime(2025, 1, 31, 20, 0, tzinfo=UTC))

    def test_today_uses_injected_now(self):
        assert TimeBasis().today(_jst(2025, 3, 10, 17, 45)) == _jst(2025, 3, 10)


class TestTimeSlots:
    def test_half_hour_slots(self):
        slots = TimeBasis().time_slots(date(2025, 2, 4), 30, 8, 10)
        assert slots == [
            _jst(2025, 2, 4, 8, 0),
            _jst(2025, 2, 4, 8, 30),
            _jst(2025, 2, 4, 9, 0),
            _jst(2025, 2, 4, 9, 30),
        ]

    def test_default_range(self):
        slots = TimeBasis().time_slots(_jst(2025, 2, 4, 13))
        assert len(slots) == 20
        assert slots[0] == _jst(2025, 2, 4, 8)

    def test_invalid_range(self):
        with pytest.raises(InvalidViewParameters):
            TimeBasis().time_slots(date(2025, 2, 4), 30, 18, 8)

    def test_invalid_interval(self):
        with pytest.raises(InvalidViewParameters):
            TimeBasis().time_slots(date(2025, 2, 4), 0)
