from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from stockbook.core.timeframes import (
    add_months,
    as_utc,
    local_date_range_utc,
    local_midnight_utc,
    local_today,
    month_label,
    month_range_utc,
    reporting_zone,
    to_local,
    trailing_months,
)

KOLKATA = ZoneInfo("Asia/Kolkata")


def test_default_reporting_zone_is_kolkata():
    assert reporting_zone().key == "Asia/Kolkata"


def test_unknown_zone_raises():
    with pytest.raises(ValueError, match="Unknown reporting timezone"):
        reporting_zone("Mars/Olympus_Mons")


def test_naive_values_are_treated_as_utc():
    value = datetime(2026, 1, 1, 12, 0)
    assert as_utc(value) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert to_local(value, KOLKATA).hour == 17


def test_local_today_rolls_over_before_utc_midnight():
    assert local_today(datetime(2026, 9, 30, 18, 30), KOLKATA) == date(2026, 10, 1)
    assert local_today(datetime(2026, 9, 30, 18, 29), KOLKATA) == date(2026, 9, 30)


def test_local_midnight_is_naive_utc():
    assert local_midnight_utc(date(2026, 3, 11), KOLKATA) == datetime(2026, 3, 10, 18, 30)


def test_date_range_is_half_open_and_covers_last_day():
    start, end = local_date_range_utc(date(2026, 3, 1), date(2026, 3, 31), KOLKATA)
    assert start == datetime(2026, 2, 28, 18, 30)
    assert end == datetime(2026, 3, 31, 18, 30)


def test_date_range_follows_daylight_saving():
    start, end = local_date_range_utc(date(2026, 3, 8), date(2026, 3, 8), ZoneInfo("America/New_York"))
    # The clocks go forward that morning, so the local day is 23 hours long.
    assert start == datetime(2026, 3, 8, 5, 0)
    assert end == datetime(2026, 3, 9, 4, 0)


@pytest.mark.parametrize(
    ("day", "months", "expected"),
    [
        (date(2026, 10, 18), 1, date(2026, 11, 1)),
        (date(2026, 12, 5), 1, date(2027, 1, 1)),
        (date(2026, 1, 31), -1, date(2025, 12, 1)),
        (date(2026, 10, 1), -12, date(2025, 10, 1)),
    ],
)
def test_add_months(day, months, expected):
    assert add_months(day, months) == expected


def test_month_range_utc():
    start, end = month_range_utc(date(2026, 2, 14), KOLKATA)
    assert start == datetime(2026, 1, 31, 18, 30)
    assert end == datetime(2026, 2, 28, 18, 30)


def test_trailing_months_oldest_first():
    months = trailing_months(13, datetime(2026, 10, 18, 12, 0), KOLKATA)
    assert len(months) == 13
    assert months[0] == date(2025, 10, 1)
    assert months[-1] == date(2026, 10, 1)


def test_month_label():
    assert month_label(date(2026, 2, 1)) == "Feb 2026"
