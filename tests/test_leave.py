from datetime import date, datetime, timedelta, timezone

import pandas as pd
import pytest

from paydesk.leave.calculations import (
    business_days_in_month,
    count_business_days,
    leave_value,
    to_calendar_date,
)

# 2024-01-01 is a Monday

def test_full_week_counts_weekdays_only():
    assert count_business_days(date(2024, 1, 1), date(2024, 1, 7), []) == 5

def test_single_day():
    assert count_business_days("2024-01-02", "2024-01-02") == 1
    assert count_business_days("2024-01-06", "2024-01-06") == 0

def test_end_before_start_is_zero():
    assert count_business_days(date(2024, 1, 5), date(2024, 1, 1)) == 0

def test_holiday_is_excluded():
    assert count_business_days("2024-01-01", "2024-01-07", [date(2024, 1, 3)]) == 4

def test_weekend_holiday_not_subtracted_twice():
    assert count_business_days("2024-01-01", "2024-01-07", ["2024-01-06"]) == 5

def test_holiday_matched_in_its_own_timezone():
    late_evening = datetime(2024, 1, 3, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert count_business_days("2024-01-01", "2024-01-07", [late_evening]) == 4
    assert count_business_days("2024-01-01", "2024-01-07", ["2024-01-03T23:30:00+02:00"]) == 4

def test_accepts_mixed_input_types():
    assert count_business_days(pd.Timestamp("2024-01-01"), datetime(2024, 1, 7, 18, 0)) == 5

@pytest.mark.parametrize("bad", [None, "", "not-a-date"])
def test_malformed_dates_give_zero(bad):
    assert count_business_days(bad, "2024-01-07") == 0
    assert count_business_days("2024-01-01", bad) == 0

def test_malformed_holidays_are_ignored():
    assert count_business_days("2024-01-01", "2024-01-07", ["garbage", None, "2024-01-03"]) == 4

def test_holiday_objects_with_holiday_date():
    class Holiday:
        holiday_date = date(2024, 1, 3)
    assert count_business_days("2024-01-01", "2024-01-07", [Holiday()]) == 4

def test_count_never_exceeds_calendar_days():
    start, end = date(2024, 3, 1), date(2024, 4, 30)
    assert 0 <= count_business_days(start, end) <= (end - start).days + 1

def test_to_calendar_date():
    assert to_calendar_date("2024-02-29") == date(2024, 2, 29)
    assert to_calendar_date(pd.NaT) is None

def test_business_days_in_month():
    assert business_days_in_month(2024, 1) == 23
    assert business_days_in_month(2024, 1, [date(2024, 1, 1)]) == 22

def test_leave_value_uses_daily_basic_rate():
    assert leave_value(10, 23000.0, 2024, 1) == pytest.approx(10000.0)
    assert leave_value(10, 22000.0, 2024, 1, ["2024-01-01"]) == pytest.approx(10000.0)
