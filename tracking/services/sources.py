"""
Where items and completion records come from.

The engine only sees `entities.HabitItem` / `entities.CompletionRecord`.
A source turns stored or decoded data into those values and drops entries
whose dates cannot be read.
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from tracking import models
from tracking.choices import RecordKind
from tracking.services.dates import normalize_date, parse_timestamp
from tracking.services.entities import CompletionRecord, HabitItem
from tracking.services.recurrence import rule_from_fields

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    def items_for_owner(self, owner_id: int, active_only: bool = False) -> List[HabitItem]:
        ...

    def records_for_items(
        self,
        items: Iterable[HabitItem],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[CompletionRecord]:
        ...


def _in_range(day: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def _record_kind(value) -> RecordKind:
    try:
        return RecordKind(int(value))
    except (TypeError, ValueError):
        return RecordKind.CHECK


# ORM


def item_from_model(obj: models.HabitItem) -> Optional[HabitItem]:
    created = normalize_date(obj.created_at)
    if created is None:
        logger.warning("Item %s has no usable creation date, skipping", obj.pk)
        return None
    return HabitItem(
        id=obj.pk,
        owner_id=obj.owner_id,
        name=obj.name,
        created=created,
        rule=rule_from_fields(obj.rule_kind, obj.repeat_days, obj.interval_days),
        is_active=obj.is_active,
        record_kind=_record_kind(obj.record_kind),
        value_unit=obj.value_unit or None,
    )


def record_from_model(obj: models.CompletionRecord) -> CompletionRecord:
    return CompletionRecord(
        id=obj.pk,
        item_id=obj.item_id,
        date=obj.date,
        created_at=obj.created_at,
        note=obj.note or None,
        value=obj.value,
        image_url=obj.image_url or None,
    )


def _prefetched_records_or_none(obj: models.HabitItem):
    """
    If `records` were prefetched, Django keeps them in _prefetched_objects_cache
    and we can skip the query.
    """
    cache = getattr(obj, "_prefetched_objects_cache", None) or {}
    if "records" not in cache:
        return None
    return list(cache["records"])


class OrmRecordSource:
    """Reads from the Django models."""

    def items_for_owner(self, owner_id: int, active_only: bool = False) -> List[HabitItem]:
        qs = models.HabitItem.objects.filter(owner_id=owner_id).order_by("name")
        if active_only:
            qs = qs.filter(is_active=True)
        return [item for item in map(item_from_model, qs) if item is not None]

    def records_for_items(self, items, start=None, end=None) -> List[CompletionRecord]:
        ids = [item.id for item in items]
        if not ids:
            return []
        qs = models.CompletionRecord.objects.filter(item_id__in=ids)
        if start is not None:
            qs = qs.filter(date__gte=start)
        if end is not None:
            qs = qs.filter(date__lte=end)
        return [record_from_model(r) for r in qs.order_by("created_at", "pk")]

    def records_for_model(self, obj: models.HabitItem) -> List[CompletionRecord]:
        prefetched = _prefetched_records_or_none(obj)
        if prefetched is None:
            prefetched = obj.records.all()
        return [record_from_model(r) for r in prefetched]


# Decoded payloads


def _first(data: Mapping[str, Any], *keys, default=None):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


TRUE_STRINGS = ("1", "true", "yes", "on")
FALSE_STRINGS = ("0", "false", "no", "off", "")


def _as_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value, default: bool = True) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
        logger.warning("Unreadable flag %r, using %s", value, default)
        return default
    if value is None:
        return default
    return bool(value)


def _payload_record_kind(data: Mapping[str, Any]) -> RecordKind:
    # REST payloads split this into check_type (0 check, 1 record mode)
    # and content_type (0 text, 1 number)
    if data.get("record_kind") is not None:
        return _record_kind(data["record_kind"])
    if _as_int(_first(data, "check_type")) == 1:
        if _as_int(_first(data, "content_type")) == 1:
            return RecordKind.NUMBER
        return RecordKind.TEXT
    return RecordKind.CHECK


def item_from_payload(data: Mapping[str, Any]) -> Optional[HabitItem]:
    """
    Build an item from a decoded API dict. Both the snake_case keys of the
    REST payload and the model field names are accepted.
    """
    created = normalize_date(_first(data, "created_at", "createdAt"))
    if created is None:
        logger.warning("Item %s has an unreadable created_at, skipping", data.get("id"))
        return None
    try:
        item_id = int(data["id"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Item payload without a usable id, skipping: %r", data)
        return None

    rule = rule_from_fields(
        _first(data, "rule_kind", "repeat_type", default=0),
        _first(data, "repeat_days", "weekdays"),
        _first(data, "interval_days", "interval"),
    )
    return HabitItem(
        id=item_id,
        owner_id=_as_int(_first(data, "owner_id", "user_id")),
        name=data.get("name", ""),
        created=created,
        rule=rule,
        is_active=_as_bool(_first(data, "is_active", "active")),
        record_kind=_payload_record_kind(data),
        value_unit=data.get("value_unit") or None,
    )


def record_from_payload(data: Mapping[str, Any]) -> Optional[CompletionRecord]:
    day = normalize_date(_first(data, "check_date", "date"))
    if day is None:
        logger.warning("Record %s has an unreadable date, skipping", data.get("id"))
        return None
    try:
        record_id = int(data["id"])
        item_id = int(data["item_id"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Record payload without usable ids, skipping: %r", data)
        return None

    value = data.get("value")
    try:
        value = float(value) if value is not None else None
    except (TypeError, ValueError):
        logger.warning("Record %s has a non-numeric value %r, ignoring it", record_id, value)
        value = None

    return CompletionRecord(
        id=record_id,
        item_id=item_id,
        date=day,
        created_at=parse_timestamp(_first(data, "checked_at", "created_at")),
        note=data.get("note") or None,
        value=value,
        image_url=data.get("image_url") or None,
    )


class PayloadRecordSource:
    """Serves items and records that were already fetched and decoded."""

    def __init__(self, items: Iterable[Dict[str, Any]] = (), records: Iterable[Dict[str, Any]] = ()):
        self._items = [i for i in map(item_from_payload, items) if i is not None]
        self._records = [r for r in map(record_from_payload, records) if r is not None]

    def items_for_owner(self, owner_id, active_only=False) -> List[HabitItem]:
        owner_id = _as_int(owner_id)
        items = [i for i in self._items if i.owner_id is not None and i.owner_id == owner_id]
        if active_only:
            items = [i for i in items if i.is_active]
        return sorted(items, key=lambda i: i.name)

    def records_for_items(self, items, start=None, end=None) -> List[CompletionRecord]:
        ids = {item.id for item in items}
        return [r for r in self._records if r.item_id in ids and _in_range(r.date, start, end)]
