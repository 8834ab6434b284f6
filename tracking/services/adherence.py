from datetime import date
from typing import List, Optional, Sequence

from django.utils import timezone

from tracking.services.dates import reporting_window
from tracking.services.entities import CompletionRecord, HabitItem
from tracking.services.sources import RecordSource
from tracking.services.statistics import (
    ItemStatistics,
    OverallStatistics,
    TodaySummary,
    aggregate_statistics,
    item_statistics,
    today_summary,
)
from tracking.services.streaks import Streaks, item_streaks
from tracking.services.timeline import DayStatus, build_timeline, full_timeline


class AdherenceService:
    """
    Fetches an owner's items and records from `source` and runs the engine
    over them. Every call works on a fresh snapshot; nothing is cached.

    `today` pins the reference date (tests, backfills); by default it is
    the local date at call time.
    """

    def __init__(self, source: RecordSource, today: Optional[date] = None):
        self.source = source
        self._today = today

    @property
    def today(self) -> date:
        return self._today or timezone.localdate()

    def _records(self, item: HabitItem, records: Optional[Sequence[CompletionRecord]]):
        if records is None:
            return self.source.records_for_items([item])
        return records

    def timeline(
        self,
        item: HabitItem,
        start: date,
        end: date,
        records: Optional[Sequence[CompletionRecord]] = None,
    ) -> List[DayStatus]:
        return build_timeline(item, self._records(item, records), start, end, today=self.today)

    def streaks(self, item: HabitItem, records: Optional[Sequence[CompletionRecord]] = None) -> Streaks:
        days = full_timeline(item, self._records(item, records), today=self.today)
        return item_streaks(item, days)

    def item_statistics(
        self,
        item: HabitItem,
        period: str,
        records: Optional[Sequence[CompletionRecord]] = None,
    ) -> ItemStatistics:
        today = self.today
        window = reporting_window(period, today)
        # from the window start when it predates creation, so early records still count
        start = min(item.created, window.start)
        days = build_timeline(item, self._records(item, records), start, today, today=today)
        return item_statistics(item, days, window, today=today)

    def overall_statistics(self, owner_id: int, period: str) -> OverallStatistics:
        today = self.today
        window = reporting_window(period, today)
        items = self.source.items_for_owner(owner_id, active_only=True)
        records = self.source.records_for_items(items, window.start, window.end)
        timelines = [
            (item, build_timeline(item, records, window.start, window.end, today=today))
            for item in items
        ]
        return aggregate_statistics(timelines, window, today=today)

    def today_summary(self, owner_id: int) -> TodaySummary:
        today = self.today
        week = reporting_window("week", today).clipped(today)
        items = self.source.items_for_owner(owner_id, active_only=True)
        records = self.source.records_for_items(items, week.start, week.end)
        return today_summary(items, records, today=today, week=week)
