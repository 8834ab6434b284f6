"""
Dashboard statistics computed from item timelines.

Rates are plain ratios in [0, 1] and are 0.0 whenever nothing was due.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from django.utils import timezone

from tracking.choices import RecordKind
from tracking.services.dates import ReportingWindow, iter_dates, reporting_window, sunday_index
from tracking.services.entities import CompletionRecord, HabitItem
from tracking.services.recurrence import is_due
from tracking.services.streaks import Streaks, adjacency_streaks, item_streaks
from tracking.services.timeline import DayState, DayStatus

logger = logging.getLogger(__name__)


def rate(done: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return done / total


@dataclass(frozen=True)
class TrendPoint:
    date: date
    completed: int
    due: int
    value: Optional[float] = None


@dataclass(frozen=True)
class ItemRanking:
    item_id: int
    item_name: str
    completed_count: int
    total_count: int
    completion_rate: float


@dataclass(frozen=True)
class OverallStatistics:
    period: str = ""
    total_check_ins: int = 0
    active_days: int = 0
    completion_rate: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0
    best_weekday: int = 0
    weekday_distribution: List[int] = field(default_factory=lambda: [0] * 7)
    trend_data: List[TrendPoint] = field(default_factory=list)
    item_rankings: List[ItemRanking] = field(default_factory=list)


@dataclass(frozen=True)
class ItemStatistics:
    item_id: int
    period: str
    trend_data: List[TrendPoint]
    total_days: int
    completed_days: int
    completion_rate: float
    current_streak: int
    longest_streak: int
    best_weekday: int
    avg_value: Optional[float] = None
    max_value: Optional[float] = None
    min_value: Optional[float] = None


@dataclass(frozen=True)
class TodaySummary:
    total_items: int = 0
    today_completed: int = 0
    today_total: int = 0
    # consecutive logged days ending today, within the current week
    week_streak: int = 0


def best_weekday(distribution: Sequence[int]) -> int:
    """Index of the largest count; the earliest index wins ties."""
    best = 0
    for index, count in enumerate(distribution):
        if count > distribution[best]:
            best = index
    return best


def weekday_distribution(dates: Iterable[date]) -> List[int]:
    """Counts per weekday, index 0 = Sunday."""
    counts = [0] * 7
    for day in dates:
        counts[sunday_index(day)] += 1
    return counts


def _in_window(days: Sequence[DayStatus], window: ReportingWindow) -> List[DayStatus]:
    return [d for d in days if d.date in window]


def _ranking(item: HabitItem, days: Sequence[DayStatus]) -> ItemRanking:
    if item.is_free:
        # free items have no due days; rank them on logged days over elapsed days
        completed = sum(1 for d in days if d.completed)
        total = sum(1 for d in days if d.status not in (DayState.FUTURE, DayState.BEFORE_CREATION))
    else:
        completed = sum(1 for d in days if d.completed and d.due)
        total = sum(1 for d in days if d.due)
    return ItemRanking(
        item_id=item.id,
        item_name=item.name,
        completed_count=completed,
        total_count=total,
        completion_rate=rate(completed, total),
    )


def rank_items(rankings: Iterable[ItemRanking]) -> List[ItemRanking]:
    return sorted(rankings, key=lambda r: (-r.completion_rate, -r.completed_count, r.item_id))


def aggregate_statistics(
    timelines: Iterable[Tuple[HabitItem, Sequence[DayStatus]]],
    window: ReportingWindow,
    today: Optional[date] = None,
) -> OverallStatistics:
    """
    Cross-item metrics for one owner over `window`.

    `timelines` pairs each item with its day statuses; days outside the
    window are ignored. No items at all gives a zeroed result.
    """
    today = today or timezone.localdate()
    window = window.clipped(today)

    completed_by_date: Counter = Counter()
    due_by_date: Counter = Counter()
    record_dates: List[date] = []
    done_due = 0
    total_due = 0
    rankings = []

    for item, days in timelines:
        days = _in_window(days, window)
        for day in days:
            if day.logged:
                completed_by_date[day.date] += 1
                record_dates.append(day.date)
            if not item.is_free and day.due:
                due_by_date[day.date] += 1
                total_due += 1
                if day.completed:
                    done_due += 1
        rankings.append(_ranking(item, days))

    logger.debug(
        "Aggregating %d items over %s..%s (%s)",
        len(rankings), window.start, window.end, window.period,
    )
    active = set(completed_by_date)
    streaks = adjacency_streaks(active, window.end if window.end >= window.start else None)
    distribution = weekday_distribution(record_dates)

    trend = [
        TrendPoint(date=day, completed=completed_by_date[day], due=due_by_date[day])
        for day in iter_dates(window.start, window.end)
    ]

    return OverallStatistics(
        period=window.period,
        total_check_ins=len(record_dates),
        active_days=len(active),
        completion_rate=rate(done_due, total_due),
        current_streak=streaks.current,
        longest_streak=streaks.longest,
        best_weekday=best_weekday(distribution),
        weekday_distribution=distribution,
        trend_data=trend,
        item_rankings=rank_items(rankings),
    )


def _value_summary(values: List[float]) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    if not values:
        return None, None, None
    return sum(values) / len(values), max(values), min(values)


def item_statistics(
    item: HabitItem,
    days: Sequence[DayStatus],
    window: ReportingWindow,
    today: Optional[date] = None,
) -> ItemStatistics:
    """
    Detail view for one item. `days` should cover the item's whole history
    so streaks are not cut at the window start; totals use the window only.
    """
    today = today or timezone.localdate()
    streaks: Streaks = item_streaks(item, days)
    window = window.clipped(today)
    in_window = _in_window(days, window)
    by_date: Dict[date, DayStatus] = {d.date: d for d in in_window}

    trend = []
    for day in iter_dates(window.start, window.end):
        status = by_date.get(day)
        if status is None:
            trend.append(TrendPoint(date=day, completed=0, due=0))
            continue
        trend.append(TrendPoint(
            date=day,
            completed=int(status.logged),
            due=int(status.due),
            value=status.record.value if status.record is not None else None,
        ))

    ranking = _ranking(item, in_window)
    values = []
    if item.record_kind == RecordKind.NUMBER:
        values = [float(d.record.value) for d in in_window if d.record is not None and d.record.value is not None]
    avg_value, max_value, min_value = _value_summary(values)

    return ItemStatistics(
        item_id=item.id,
        period=window.period,
        trend_data=trend,
        total_days=ranking.total_count,
        completed_days=ranking.completed_count,
        completion_rate=ranking.completion_rate,
        current_streak=streaks.current,
        longest_streak=streaks.longest,
        best_weekday=best_weekday(weekday_distribution(d.date for d in in_window if d.logged)),
        avg_value=avg_value,
        max_value=max_value,
        min_value=min_value,
    )


def today_summary(
    items: Iterable[HabitItem],
    records: Iterable[CompletionRecord],
    today: Optional[date] = None,
    week: Optional[ReportingWindow] = None,
) -> TodaySummary:
    """
    Counts for the main list header: active items, logged today, due today,
    and the run of logged days this week that reaches today.

    `records` should cover `week` (the reporting week containing today by
    default); records outside it are ignored.
    """
    today = today or timezone.localdate()
    week = (week or reporting_window("week", today)).clipped(today)
    records = list(records)
    active = [i for i in items if i.is_active and i.created <= today]
    active_ids = {i.id for i in active}
    logged_today = {r.item_id for r in records if r.date == today}
    week_days = {r.date for r in records if r.item_id in active_ids and r.date in week}

    return TodaySummary(
        total_items=len(active),
        today_completed=sum(1 for i in active if i.id in logged_today),
        today_total=sum(1 for i in active if is_due(i.rule, i.created, today)),
        week_streak=adjacency_streaks(week_days, today).current,
    )
