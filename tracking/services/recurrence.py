"""
Recurrence rules and the single due-day predicate every caller goes through.

Weekdays are ISO numbered: 1 = Monday ... 7 = Sunday.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Iterable, List, Optional, Tuple

from tracking.choices import RuleKind
from tracking.services.dates import iter_dates

logger = logging.getLogger(__name__)

WORKDAYS = frozenset({1, 2, 3, 4, 5})
WEEKEND_DAYS = frozenset({6, 7})


@dataclass(frozen=True)
class RecurrenceRule:
    kind: RuleKind = RuleKind.DAILY
    weekdays: FrozenSet[int] = field(default_factory=frozenset)
    interval: int = 1

    @classmethod
    def daily(cls) -> "RecurrenceRule":
        return cls(RuleKind.DAILY)

    @classmethod
    def weekday(cls) -> "RecurrenceRule":
        return cls(RuleKind.WEEKDAY)

    @classmethod
    def weekend(cls) -> "RecurrenceRule":
        return cls(RuleKind.WEEKEND)

    @classmethod
    def free(cls) -> "RecurrenceRule":
        return cls(RuleKind.FREE)

    @classmethod
    def custom(cls, weekdays: Iterable[int]) -> "RecurrenceRule":
        days = frozenset(int(d) for d in weekdays)
        valid = frozenset(d for d in days if 1 <= d <= 7)
        if valid != days:
            logger.warning("Dropping out-of-range weekdays %s", sorted(days - valid))
        if not valid:
            logger.warning("Custom rule without weekdays, every day will be due")
        return cls(RuleKind.CUSTOM, weekdays=valid)

    @classmethod
    def every(cls, days: int) -> "RecurrenceRule":
        if days < 1:
            logger.warning("Interval of %s days clamped to 1", days)
            days = 1
        return cls(RuleKind.INTERVAL, interval=days)

    @property
    def is_free(self) -> bool:
        return self.kind == RuleKind.FREE

    def to_fields(self) -> Tuple[int, str, int]:
        """(rule_kind, repeat_days, interval_days) as stored on the model."""
        repeat_days = ",".join(str(d) for d in sorted(self.weekdays))
        return int(self.kind), repeat_days, self.interval


def parse_weekdays(repeat_days) -> List[int]:
    """
    '1,3,5' -> [1, 3, 5]. Lists pass through, a lone scalar is one token;
    junk tokens are skipped.
    """
    if repeat_days is None:
        return []
    if isinstance(repeat_days, str):
        tokens = repeat_days.split(",")
    else:
        try:
            tokens = list(repeat_days)
        except TypeError:
            tokens = [repeat_days]

    days = []
    for token in tokens:
        try:
            days.append(int(str(token).strip()))
        except ValueError:
            logger.warning("Ignoring weekday token %r", token)
    return days


def parse_interval(interval_days) -> int:
    """Interval in days; anything unreadable counts as 1."""
    if interval_days is None or interval_days == "":
        return 1
    try:
        return int(interval_days)
    except (TypeError, ValueError):
        logger.warning("Unreadable interval %r, using 1 day", interval_days)
        return 1


def rule_from_fields(kind, repeat_days=None, interval_days: Optional[int] = None) -> RecurrenceRule:
    try:
        kind = RuleKind(int(kind))
    except (TypeError, ValueError):
        logger.warning("Unknown rule kind %r, treating as daily", kind)
        return RecurrenceRule.daily()

    if kind == RuleKind.CUSTOM:
        return RecurrenceRule.custom(parse_weekdays(repeat_days))
    if kind == RuleKind.INTERVAL:
        return RecurrenceRule.every(parse_interval(interval_days))
    return RecurrenceRule(kind)


def is_due(rule: RecurrenceRule, created: date, day: date) -> bool:
    """
    Whether `day` requires action under `rule`.

    Only meaningful for day >= created; callers classify earlier dates as
    before-creation first.
    """
    kind = rule.kind
    if kind == RuleKind.DAILY:
        return True
    if kind == RuleKind.WEEKDAY:
        return day.isoweekday() in WORKDAYS
    if kind == RuleKind.WEEKEND:
        return day.isoweekday() in WEEKEND_DAYS
    if kind == RuleKind.CUSTOM:
        if not rule.weekdays:
            return True
        return day.isoweekday() in rule.weekdays
    if kind == RuleKind.INTERVAL:
        return (day - created).days % max(rule.interval, 1) == 0
    return False


def due_dates(rule: RecurrenceRule, created: date, start: date, end: date) -> List[date]:
    return [d for d in iter_dates(max(start, created), end) if is_due(rule, created, d)]
