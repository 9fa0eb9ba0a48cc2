"""Tests for calendar arithmetic."""

from datetime import date, datetime, timedelta

import pytest

from office_tracker.datemath import (
    add_months,
    business_days_between_inclusive,
    end_of_month,
    from_iso,
    get_quarter,
    get_quarter_range,
    is_business_day,
    is_same_day,
    quarter_for,
    start_of_month,
    to_iso,
)


class TestIsoDates:
    def test_round_trip_for_every_day_of_a_leap_year(self):
        day = date(2024, 1, 1)
        while day.year == 2024:
            assert from_iso(to_iso(day)) == day
            day += timedelta(days=1)

    def test_late_evening_datetime_keeps_its_own_day(self):
        assert to_iso(datetime(2024, 3, 31, 23, 59, 59)) == "2024-03-31"

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            from_iso("31/03/2024")
        with pytest.raises(ValueError):
            from_iso("2024-02-30")


class TestMonths:
    def test_month_bounds(self):
        assert start_of_month(date(2024, 2, 17)) == date(2024, 2, 1)
        assert end_of_month(date(2024, 2, 17)) == date(2024, 2, 29)
        assert end_of_month(date(2023, 2, 1)) == date(2023, 2, 28)
        assert end_of_month(date(2024, 12, 5)) == date(2024, 12, 31)

    def test_same_day_ignores_time_of_day(self):
        assert is_same_day(datetime(2024, 2, 9, 23, 59), datetime(2024, 2, 9, 0, 1))
        assert not is_same_day(date(2024, 2, 9), date(2024, 3, 9))

    def test_add_months_crosses_years(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 1)
        assert add_months(date(2024, 1, 15), -1) == date(2023, 12, 1)
        assert add_months(date(2023, 12, 15), 1) == date(2024, 1, 1)


class TestQuarters:
    @pytest.mark.parametrize("year", [1999, 2024, 2025])
    def test_month_to_quarter(self, year):
        expected = [1, 1, 1, 2, 2, 2, 3, 3, 3, 4, 4, 4]
        assert [get_quarter(date(year, m, 1)) for m in range(1, 13)] == expected

    def test_quarter_ranges_are_calendar_aligned(self):
        q1 = get_quarter_range(2024, 1)
        assert (q1.start, q1.end) == (date(2024, 1, 1), date(2024, 3, 31))
        q2 = get_quarter_range(2024, 2)
        assert (q2.start, q2.end) == (date(2024, 4, 1), date(2024, 6, 30))
        q4 = get_quarter_range(2024, 4)
        assert (q4.start, q4.end) == (date(2024, 10, 1), date(2024, 12, 31))

    def test_quarter_for_a_date(self):
        quarter = quarter_for(date(2024, 8, 15))
        assert quarter.quarter == 3
        assert quarter.start == date(2024, 7, 1)
        assert quarter.end == date(2024, 9, 30)

    @pytest.mark.parametrize("quarter", [0, 5, -1])
    def test_invalid_quarter_is_rejected(self, quarter):
        with pytest.raises(ValueError):
            get_quarter_range(2024, quarter)


class TestBusinessDays:
    def test_weekdays_only(self):
        # 2024-01-01 is a Monday
        assert is_business_day(date(2024, 1, 1))
        assert is_business_day(date(2024, 1, 5))
        assert not is_business_day(date(2024, 1, 6))
        assert not is_business_day(date(2024, 1, 7))

    def test_counts_are_inclusive(self):
        assert business_days_between_inclusive(date(2024, 1, 1), date(2024, 1, 1)) == 1
        assert business_days_between_inclusive(date(2024, 1, 1), date(2024, 1, 7)) == 5
        assert business_days_between_inclusive(date(2024, 1, 5), date(2024, 1, 8)) == 2
        assert business_days_between_inclusive(date(2024, 1, 6), date(2024, 1, 7)) == 0
        assert business_days_between_inclusive(date(2024, 1, 1), date(2024, 1, 14)) == 10

    def test_whole_quarter(self):
        q1 = get_quarter_range(2024, 1)
        assert business_days_between_inclusive(q1.start, q1.end) == 65

    def test_reversed_range_is_zero(self):
        assert business_days_between_inclusive(date(2024, 1, 10), date(2024, 1, 1)) == 0
