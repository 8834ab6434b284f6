from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from tracking.services.entities import HabitItem
from tracking.services.timeline import DayState, DayStatus


@dataclass(frozen=True)
class Streaks:
    current: int = 0
    longest: int = 0


def rule_based_streaks(days: Sequence[DayStatus]) -> Streaks:
    """
    Streak over due days: a completed due day extends the run, a missed day
    resets it, everything else is skipped.

    A record on a day the rule does not require never extends the run.
    """
    running = 0
    longest = 0
    for day in days:
        if day.status is DayState.MISSED:
            running = 0
        elif day.status is DayState.COMPLETED and day.due:
            running += 1
            longest = max(longest, running)
    # skipped days leave the running value untouched, so it is also the
    # value at the most recent counted day
    return Streaks(current=running, longest=longest)


def adjacency_streaks(dates: Iterable[date], last_day: Optional[date]) -> Streaks:
    """
    Runs of consecutive calendar dates. `current` is the run ending on
    `last_day`, 0 when `last_day` is not among the dates.
    """
    ordered: List[date] = sorted(set(dates))
    if not ordered:
        return Streaks()

    longest = 1
    run = 1
    for prev, nxt in zip(ordered, ordered[1:]):
        if nxt == prev + timedelta(days=1):
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    current = run if last_day is not None and ordered[-1] == last_day else 0
    return Streaks(current=current, longest=longest)


def _last_elapsed_day(days: Sequence[DayStatus]) -> Optional[date]:
    for day in reversed(days):
        if day.status is not DayState.FUTURE:
            return day.date
    return None


def free_streaks(days: Sequence[DayStatus]) -> Streaks:
    """
    Streak for free-logging items: consecutive calendar days bearing a
    record, whatever the rule says about due days.
    """
    logged = [d.date for d in days if d.status is DayState.COMPLETED]
    return adjacency_streaks(logged, _last_elapsed_day(days))


def item_streaks(item: HabitItem, days: Sequence[DayStatus]) -> Streaks:
    if item.is_free:
        return free_streaks(days)
    return rule_based_streaks(days)
