import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator, Optional

from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

DEFAULT_DATETIME_INPUT_FORMATS = [
    "%Y-%m-%d %H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
]

PERIODS = ("week", "month", "year")


def _input_formats():
    return getattr(settings, "TRACKING_DATETIME_INPUT_FORMATS", DEFAULT_DATETIME_INPUT_FORMATS)


def _as_local_date(value: datetime) -> date:
    if timezone.is_aware(value):
        return timezone.localdate(value)
    return value.date()


def parse_timestamp(value) -> Optional[datetime]:
    """First TRACKING_DATETIME_INPUT_FORMATS entry that parses `value`, else None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    for fmt in _input_formats():
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def normalize_date(value) -> Optional[date]:
    """
    Coerce a date, datetime or loosely formatted string to a calendar date.

    Strings are tried against TRACKING_DATETIME_INPUT_FORMATS in order, then
    the first ten characters are read as YYYY-MM-DD. Aware values are moved
    to the local time zone before the date is taken.
    Returns None (and logs) when nothing matches.
    """
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value

    parsed = parse_timestamp(value)
    if parsed is not None:
        return _as_local_date(parsed)

    text = str(value).strip()
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        logger.warning("Unparseable date value %r, excluding it", value)
        return None


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Inclusive; yields nothing when end < start."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def sunday_index(day: date) -> int:
    # 0 = Sunday ... 6 = Saturday
    return day.isoweekday() % 7


@dataclass(frozen=True)
class ReportingWindow:
    period: str
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def clipped(self, today: date) -> "ReportingWindow":
        return ReportingWindow(self.period, self.start, min(self.end, today))


def reporting_window(period: str, today: Optional[date] = None, week_start: Optional[int] = None) -> ReportingWindow:
    """
    Calendar week, month or year containing `today`.

    `week_start` is the ISO weekday a week begins on (TRACKING_WEEK_START,
    Monday by default). Unknown periods are treated as "week".
    """
    today = today or timezone.localdate()
    if week_start is None:
        week_start = getattr(settings, "TRACKING_WEEK_START", 1)

    if period not in PERIODS:
        logger.warning("Unknown reporting period %r, using 'week'", period)
        period = "week"

    if period == "week":
        offset = (today.isoweekday() - week_start) % 7
        start = today - timedelta(days=offset)
        return ReportingWindow(period, start, start + timedelta(days=6))

    if period == "month":
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return ReportingWindow(period, start, next_month - timedelta(days=1))

    return ReportingWindow(period, date(today.year, 1, 1), date(today.year, 12, 31))
