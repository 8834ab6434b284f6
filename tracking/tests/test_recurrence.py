from datetime import date, timedelta

import pytest

from tracking.choices import RuleKind
from tracking.services.dates import iter_dates
from tracking.services.recurrence import (
    RecurrenceRule,
    due_dates,
    is_due,
    parse_interval,
    parse_weekdays,
    rule_from_fields,
)

CREATED = date(2024, 1, 1)  # Monday
FOUR_WEEKS = list(iter_dates(CREATED, CREATED + timedelta(days=27)))


def test_is_due__daily__every_date_from_creation():
    rule = RecurrenceRule.daily()
    assert all(is_due(rule, CREATED, d) for d in FOUR_WEEKS)


def test_is_due__free__never_due():
    rule = RecurrenceRule.free()
    assert not any(is_due(rule, CREATED, d) for d in FOUR_WEEKS)


def test_is_due__weekday__monday_to_friday_only():
    rule = RecurrenceRule.weekday()
    week = list(iter_dates(date(2024, 1, 1), date(2024, 1, 7)))
    assert [is_due(rule, CREATED, d) for d in week] == [True] * 5 + [False] * 2


def test_is_due__weekend__saturday_and_sunday_only():
    rule = RecurrenceRule.weekend()
    week = list(iter_dates(date(2024, 1, 1), date(2024, 1, 7)))
    assert [is_due(rule, CREATED, d) for d in week] == [False] * 5 + [True] * 2


def test_is_due__custom__only_listed_iso_weekdays():
    rule = RecurrenceRule.custom({1, 3, 5})
    week = list(iter_dates(date(2024, 1, 1), date(2024, 1, 7)))
    assert [is_due(rule, CREATED, d) for d in week] == [True, False, True, False, True, False, False]


def test_is_due__custom_without_weekdays__behaves_as_daily():
    rule = RecurrenceRule.custom([])
    assert rule.weekdays == frozenset()
    assert all(is_due(rule, CREATED, d) for d in FOUR_WEEKS)


@pytest.mark.parametrize("n", [1, 2, 3, 7])
def test_is_due__interval__creation_day_and_every_nth_day_after(n):
    rule = RecurrenceRule.every(n)
    due = [d for d in FOUR_WEEKS if is_due(rule, CREATED, d)]

    assert due[0] == CREATED
    assert all((b - a).days == n for a, b in zip(due, due[1:]))
    assert len(due) == (len(FOUR_WEEKS) - 1) // n + 1


def test_every__non_positive_interval__clamped_to_one(caplog):
    rule = RecurrenceRule.every(0)
    assert rule.interval == 1
    assert "clamped" in caplog.text
    assert all(is_due(rule, CREATED, d) for d in FOUR_WEEKS[:5])


def test_custom__out_of_range_weekdays_dropped():
    assert RecurrenceRule.custom([0, 1, 7, 8]).weekdays == frozenset({1, 7})


def test_parse_weekdays__string_list_and_junk():
    assert parse_weekdays("1, 3,x,5,") == [1, 3, 5]
    assert parse_weekdays([2, "4"]) == [2, 4]
    assert parse_weekdays(None) == []


def test_rule_from_fields__builds_each_kind():
    assert rule_from_fields(0).kind == RuleKind.DAILY
    assert rule_from_fields(1).kind == RuleKind.WEEKDAY
    assert rule_from_fields(2).kind == RuleKind.WEEKEND
    assert rule_from_fields(3, "1,3,5").weekdays == frozenset({1, 3, 5})
    assert rule_from_fields(4, None, 3).interval == 3
    assert rule_from_fields(5).is_free


def test_rule_from_fields__malformed_input_falls_back():
    assert rule_from_fields("bogus") == RecurrenceRule.daily()
    assert rule_from_fields(99) == RecurrenceRule.daily()
    assert rule_from_fields(4, None, 0).interval == 1
    assert rule_from_fields(4, None, None).interval == 1


def test_parse_weekdays__scalar_is_a_single_token():
    assert parse_weekdays(3) == [3]
    assert parse_weekdays(3.5) == []


def test_parse_interval__unreadable_values_count_as_one(caplog):
    assert parse_interval("abc") == 1
    assert parse_interval([2]) == 1
    assert parse_interval("") == 1
    assert parse_interval("3") == 3
    assert "Unreadable interval 'abc'" in caplog.text


def test_rule_from_fields__malformed_params_never_raise():
    assert rule_from_fields(4, None, "abc") == RecurrenceRule.every(1)
    assert rule_from_fields(3, 3) == RecurrenceRule.custom({3})
    assert rule_from_fields(3, object()) == RecurrenceRule.custom([])


def test_to_fields__matches_model_columns():
    assert RecurrenceRule.custom({5, 1}).to_fields() == (3, "1,5", 1)
    assert RecurrenceRule.every(4).to_fields() == (4, "", 4)
    assert rule_from_fields(*RecurrenceRule.custom({2, 6}).to_fields()) == RecurrenceRule.custom({2, 6})


def test_due_dates__starts_no_earlier_than_creation():
    rule = RecurrenceRule.every(2)
    got = due_dates(rule, CREATED, date(2023, 12, 25), date(2024, 1, 6))
    assert got == [date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 5)]
