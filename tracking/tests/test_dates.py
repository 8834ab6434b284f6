from datetime import date, datetime, timezone as dt_timezone

import pytest

from tracking.services.dates import (
    iter_dates,
    normalize_date,
    parse_timestamp,
    reporting_window,
    sunday_index,
)


@pytest.fixture(autouse=True)
def utc(settings):
    settings.TIME_ZONE = "UTC"


@pytest.mark.parametrize(
    "raw",
    [
        "2024-03-05 10:11:12.123456+00:00",
        "2024-03-05 10:11:12.123456",
        "2024-03-05 10:11:12+00:00",
        "2024-03-05 10:11:12",
        "2024-03-05T10:11:12.123456Z",
        "2024-03-05T10:11:12.123456",
        "2024-03-05T10:11:12+00:00",
        "2024-03-05T10:11:12",
        "2024-03-05",
    ],
)
def test_normalize_date__known_formats(raw):
    assert normalize_date(raw) == date(2024, 3, 5)


def test_normalize_date__aware_value_uses_local_calendar_day():
    # 01:00 at +08:00 is still the previous day in UTC
    assert normalize_date("2024-03-05T01:00:00+08:00") == date(2024, 3, 4)


def test_normalize_date__falls_back_to_date_prefix():
    assert normalize_date("2024-03-05 at noon") == date(2024, 3, 5)


def test_normalize_date__unparseable__returns_none_and_logs(caplog):
    assert normalize_date("yesterday") is None
    assert "Unparseable" in caplog.text


def test_normalize_date__passthrough_values():
    assert normalize_date(None) is None
    assert normalize_date(date(2024, 1, 2)) == date(2024, 1, 2)
    assert normalize_date(datetime(2024, 1, 2, 23, 59)) == date(2024, 1, 2)
    assert normalize_date(datetime(2024, 1, 2, 23, 59, tzinfo=dt_timezone.utc)) == date(2024, 1, 2)


def test_parse_timestamp__no_prefix_fallback():
    assert parse_timestamp("2024-03-05 10:11:12") == datetime(2024, 3, 5, 10, 11, 12)
    assert parse_timestamp("2024-03-05 at noon") is None


def test_parse_timestamp__formats_overridable_from_settings(settings):
    assert parse_timestamp("05/03/2024") is None

    settings.TRACKING_DATETIME_INPUT_FORMATS = ["%d/%m/%Y"]

    assert parse_timestamp("05/03/2024") == datetime(2024, 3, 5)
    assert parse_timestamp("2024-03-05") is None


def test_iter_dates__inclusive_and_empty_when_inverted():
    assert list(iter_dates(date(2024, 1, 30), date(2024, 2, 1))) == [
        date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1),
    ]
    assert list(iter_dates(date(2024, 1, 2), date(2024, 1, 1))) == []


def test_sunday_index():
    assert sunday_index(date(2024, 1, 7)) == 0  # Sunday
    assert sunday_index(date(2024, 1, 1)) == 1  # Monday
    assert sunday_index(date(2024, 1, 6)) == 6  # Saturday


def test_reporting_window__week_starting_monday():
    window = reporting_window("week", date(2024, 1, 4), week_start=1)
    assert (window.start, window.end) == (date(2024, 1, 1), date(2024, 1, 7))


def test_reporting_window__week_starting_sunday():
    window = reporting_window("week", date(2024, 1, 4), week_start=7)
    assert (window.start, window.end) == (date(2023, 12, 31), date(2024, 1, 6))


def test_reporting_window__week_start_from_settings(settings):
    settings.TRACKING_WEEK_START = 7
    window = reporting_window("week", date(2024, 1, 7))
    assert window.start == date(2024, 1, 7)


def test_reporting_window__month_and_year():
    month = reporting_window("month", date(2024, 2, 10))
    assert (month.start, month.end) == (date(2024, 2, 1), date(2024, 2, 29))

    december = reporting_window("month", date(2024, 12, 31))
    assert (december.start, december.end) == (date(2024, 12, 1), date(2024, 12, 31))

    year = reporting_window("year", date(2024, 6, 1))
    assert (year.start, year.end) == (date(2024, 1, 1), date(2024, 12, 31))


def test_reporting_window__unknown_period_is_week(caplog):
    window = reporting_window("fortnight", date(2024, 1, 4), week_start=1)
    assert window.period == "week"
    assert "Unknown reporting period" in caplog.text


def test_reporting_window__clipped_and_membership():
    window = reporting_window("month", date(2024, 1, 10)).clipped(date(2024, 1, 10))
    assert window.end == date(2024, 1, 10)
    assert date(2024, 1, 10) in window
    assert date(2024, 1, 11) not in window
