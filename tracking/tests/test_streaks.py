from datetime import date, timedelta

from tracking.services.entities import CompletionRecord, HabitItem
from tracking.services.recurrence import RecurrenceRule
from tracking.services.streaks import (
    Streaks,
    adjacency_streaks,
    free_streaks,
    item_streaks,
    rule_based_streaks,
)
from tracking.services.timeline import build_timeline

CREATED = date(2024, 1, 1)  # Monday


def _days(rule, completed, end, created=CREATED, start=None):
    item = HabitItem(id=1, owner_id=1, name="x", created=created, rule=rule)
    records = [CompletionRecord(id=i, item_id=1, date=d) for i, d in enumerate(completed, start=1)]
    return item, build_timeline(item, records, start or created, end, today=end)


def _jan(*days):
    return [date(2024, 1, d) for d in days]


def test_rule_based__weekday_rule_with_a_miss_between_completions():
    # Mon 1st missed, Tue done, Wed missed, Thu done
    _, days = _days(RecurrenceRule.weekday(), _jan(2, 4), end=date(2024, 1, 4))
    assert rule_based_streaks(days) == Streaks(current=1, longest=1)


def test_rule_based__custom_mon_wed_fri_all_done():
    _, days = _days(RecurrenceRule.custom({1, 3, 5}), _jan(1, 3, 5), end=date(2024, 1, 5))
    assert rule_based_streaks(days) == Streaks(current=3, longest=3)


def test_rule_based__trailing_not_due_days_keep_current():
    _, days = _days(RecurrenceRule.custom({1, 3, 5}), _jan(1, 3, 5), end=date(2024, 1, 7))
    assert rule_based_streaks(days) == Streaks(current=3, longest=3)


def test_rule_based__every_due_day_done__current_equals_longest_equals_due_count():
    rule = RecurrenceRule.every(3)
    end = date(2024, 1, 31)
    due = [d for d in (CREATED + timedelta(days=n) for n in range(31)) if (d - CREATED).days % 3 == 0]

    _, days = _days(rule, due, end=end)

    assert rule_based_streaks(days) == Streaks(current=len(due), longest=len(due))


def test_rule_based__single_miss_between_runs__longest_is_max_run():
    # run of 3, miss on the 4th, run of 2
    _, days = _days(RecurrenceRule.daily(), _jan(1, 2, 3, 5, 6), end=date(2024, 1, 6))
    assert rule_based_streaks(days) == Streaks(current=2, longest=3)


def test_rule_based__record_on_not_due_day_does_not_extend():
    # weekday rule from Fri 5th: Fri done, Sat logged anyway, Mon done
    _, days = _days(RecurrenceRule.weekday(), _jan(5, 6, 8), end=date(2024, 1, 8), created=date(2024, 1, 5))
    assert rule_based_streaks(days) == Streaks(current=2, longest=2)


def test_rule_based__today_not_done_yet__current_is_zero():
    _, days = _days(RecurrenceRule.daily(), _jan(1, 2, 3), end=date(2024, 1, 4))
    assert rule_based_streaks(days) == Streaks(current=0, longest=3)


def test_rule_based__before_creation_and_future_days_skipped():
    item = HabitItem(id=1, owner_id=1, name="x", created=date(2024, 1, 3), rule=RecurrenceRule.daily())
    records = [CompletionRecord(id=1, item_id=1, date=date(2024, 1, 3))]
    days = build_timeline(item, records, date(2024, 1, 1), date(2024, 1, 10), today=date(2024, 1, 3))

    assert rule_based_streaks(days) == Streaks(current=1, longest=1)


def test_rule_based__empty_sequence():
    assert rule_based_streaks([]) == Streaks(0, 0)


def test_free__calendar_adjacency_of_logged_days():
    _, days = _days(RecurrenceRule.free(), _jan(1, 2, 3, 5, 6), end=date(2024, 1, 6))
    assert free_streaks(days) == Streaks(current=2, longest=3)


def test_free__nothing_logged_on_last_day__current_is_zero():
    _, days = _days(RecurrenceRule.free(), _jan(1, 2, 3, 5, 6), end=date(2024, 1, 7))
    assert free_streaks(days) == Streaks(current=0, longest=3)


def test_free__no_records():
    _, days = _days(RecurrenceRule.free(), [], end=date(2024, 1, 7))
    assert free_streaks(days) == Streaks(0, 0)


def test_item_streaks__dispatches_on_rule_kind():
    free_item, free_days = _days(RecurrenceRule.free(), _jan(1, 2), end=date(2024, 1, 2))
    assert item_streaks(free_item, free_days) == Streaks(current=2, longest=2)
    # the rule-based count would ignore these records entirely
    assert rule_based_streaks(free_days) == Streaks(0, 0)

    daily_item, daily_days = _days(RecurrenceRule.daily(), _jan(1, 2), end=date(2024, 1, 2))
    assert item_streaks(daily_item, daily_days) == Streaks(current=2, longest=2)


def test_adjacency_streaks__duplicates_and_unsorted_input():
    dates = _jan(10, 8, 9, 9, 1)
    assert adjacency_streaks(dates, date(2024, 1, 10)) == Streaks(current=3, longest=3)
    assert adjacency_streaks(dates, date(2024, 1, 11)) == Streaks(current=0, longest=3)
    assert adjacency_streaks([], date(2024, 1, 11)) == Streaks(0, 0)
