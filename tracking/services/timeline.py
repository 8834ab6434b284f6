import enum
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from django.utils import timezone

from tracking.services.dates import iter_dates
from tracking.services.entities import CompletionRecord, HabitItem
from tracking.services.recurrence import is_due

logger = logging.getLogger(__name__)


class DayState(enum.Enum):
    COMPLETED = "completed"
    MISSED = "missed"
    NOT_DUE = "not_due"
    BEFORE_CREATION = "before_creation"
    FUTURE = "future"


@dataclass(frozen=True)
class DayStatus:
    date: date
    item_id: int
    status: DayState
    # rule requires action that day; False for completed-but-not-due days
    due: bool = False
    record: Optional[CompletionRecord] = None

    @property
    def logged(self) -> bool:
        return self.record is not None

    @property
    def completed(self) -> bool:
        return self.status is DayState.COMPLETED


def _written_later(new: CompletionRecord, old: CompletionRecord) -> bool:
    if new.created_at is None or old.created_at is None:
        return True
    try:
        return new.created_at >= old.created_at
    except TypeError:
        # naive vs aware timestamps: fall back to arrival order
        return True


def records_by_date(records: Iterable[CompletionRecord]) -> Dict[date, CompletionRecord]:
    """
    One record per calendar date, last write wins.
    """
    by_date: Dict[date, CompletionRecord] = {}
    for record in records:
        existing = by_date.get(record.date)
        if existing is None:
            by_date[record.date] = record
            continue
        logger.debug(
            "Duplicate records %s and %s for item %s on %s",
            existing.id, record.id, record.item_id, record.date,
        )
        if _written_later(record, existing):
            by_date[record.date] = record
    return by_date


def classify_day(item: HabitItem, day: date, record: Optional[CompletionRecord], today: date) -> DayStatus:
    if day < item.created:
        # the record is kept for record-based counts; it never touches streaks
        return DayStatus(day, item.id, DayState.BEFORE_CREATION, record=record)
    if day > today:
        return DayStatus(day, item.id, DayState.FUTURE)

    due = is_due(item.rule, item.created, day)
    if record is not None:
        return DayStatus(day, item.id, DayState.COMPLETED, due=due, record=record)
    if due:
        return DayStatus(day, item.id, DayState.MISSED, due=True)
    return DayStatus(day, item.id, DayState.NOT_DUE)


def build_timeline(
    item: HabitItem,
    records: Iterable[CompletionRecord],
    start: date,
    end: date,
    today: Optional[date] = None,
) -> List[DayStatus]:
    """
    Per-date status of `item` for every date in [start, end].

    Records belonging to other items are ignored. Identical inputs always
    give an identical sequence.
    """
    today = today or timezone.localdate()
    lookup = records_by_date(r for r in records if r.item_id == item.id)
    return [classify_day(item, day, lookup.get(day), today) for day in iter_dates(start, end)]


def full_timeline(item: HabitItem, records: Iterable[CompletionRecord], today: Optional[date] = None) -> List[DayStatus]:
    """From the creation date through today."""
    today = today or timezone.localdate()
    return build_timeline(item, records, item.created, today, today=today)
