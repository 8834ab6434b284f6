from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from tracking.choices import RecordKind
from tracking.services.recurrence import RecurrenceRule


@dataclass(frozen=True)
class HabitItem:
    id: int
    owner_id: int
    name: str
    created: date
    rule: RecurrenceRule
    is_active: bool = True
    record_kind: RecordKind = RecordKind.CHECK
    value_unit: Optional[str] = None

    @property
    def is_free(self) -> bool:
        return self.rule.is_free


@dataclass(frozen=True)
class CompletionRecord:
    id: int
    item_id: int
    date: date
    created_at: Optional[datetime] = None
    note: Optional[str] = None
    value: Optional[float] = None
    image_url: Optional[str] = None
