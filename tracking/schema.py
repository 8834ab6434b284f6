import logging

import graphene
from django.utils import timezone
from graphene_django import DjangoObjectType
from graphql import GraphQLError

from .models import CompletionRecord, HabitItem
from tracking.services.adherence import AdherenceService
from tracking.services.recurrence import rule_from_fields
from tracking.services.sources import OrmRecordSource, item_from_model
from tracking.services.streaks import Streaks

logger = logging.getLogger(__name__)


def _require_user(info):
    user = info.context.user
    if user.is_anonymous:
        raise GraphQLError("Authentication required")
    return user


def _service():
    return AdherenceService(OrmRecordSource())


def _engine_inputs(obj: HabitItem):
    """Domain item plus its records, reusing prefetched rows when present."""
    return item_from_model(obj), OrmRecordSource().records_for_model(obj)


def _item_streaks(obj: HabitItem) -> Streaks:
    # both streak fields of one item share a single timeline walk
    cached = getattr(obj, "_streaks_cache", None)
    if cached is not None:
        return cached
    item, records = _engine_inputs(obj)
    streaks = _service().streaks(item, records) if item else Streaks()
    obj._streaks_cache = streaks
    return streaks


class DayStatusType(graphene.ObjectType):
    date = graphene.Date()
    item_id = graphene.ID()
    status = graphene.String()
    due = graphene.Boolean()
    note = graphene.String()
    value = graphene.Float()

    def resolve_status(self, info):
        return self.status.value

    def resolve_note(self, info):
        return self.record.note if self.record is not None else None

    def resolve_value(self, info):
        return self.record.value if self.record is not None else None


class TrendPointType(graphene.ObjectType):
    date = graphene.Date()
    completed = graphene.Int()
    due = graphene.Int()
    value = graphene.Float()


class ItemRankingType(graphene.ObjectType):
    item_id = graphene.ID()
    item_name = graphene.String()
    completed_count = graphene.Int()
    total_count = graphene.Int()
    completion_rate = graphene.Float()


class OverallStatisticsType(graphene.ObjectType):
    period = graphene.String()
    total_check_ins = graphene.Int()
    active_days = graphene.Int()
    completion_rate = graphene.Float()
    current_streak = graphene.Int()
    longest_streak = graphene.Int()
    best_weekday = graphene.Int()
    weekday_distribution = graphene.List(graphene.Int)
    trend_data = graphene.List(TrendPointType)
    item_rankings = graphene.List(ItemRankingType)


class ItemStatisticsType(graphene.ObjectType):
    period = graphene.String()
    trend_data = graphene.List(TrendPointType)
    total_days = graphene.Int()
    completed_days = graphene.Int()
    completion_rate = graphene.Float()
    current_streak = graphene.Int()
    longest_streak = graphene.Int()
    best_weekday = graphene.Int()
    avg_value = graphene.Float()
    max_value = graphene.Float()
    min_value = graphene.Float()


class TodaySummaryType(graphene.ObjectType):
    total_items = graphene.Int()
    today_completed = graphene.Int()
    today_total = graphene.Int()
    week_streak = graphene.Int()


class HabitItemType(DjangoObjectType):
    current_streak = graphene.Int()
    longest_streak = graphene.Int()
    timeline = graphene.List(
        DayStatusType,
        start=graphene.Date(required=True),
        end=graphene.Date(required=True),
    )
    statistics = graphene.Field(ItemStatisticsType, period=graphene.String(default_value="month"))

    class Meta:
        model = HabitItem
        fields = (
            "id", "name", "description", "rule_kind", "repeat_days", "interval_days",
            "record_kind", "value_unit", "is_active", "created_at", "records",
        )
        convert_choices_to_enum = False

    def resolve_current_streak(self, info):
        return _item_streaks(self).current

    def resolve_longest_streak(self, info):
        return _item_streaks(self).longest

    def resolve_timeline(self, info, start, end):
        item, records = _engine_inputs(self)
        if item is None:
            return []
        return _service().timeline(item, start, end, records)

    def resolve_statistics(self, info, period):
        item, records = _engine_inputs(self)
        if item is None:
            return None
        return _service().item_statistics(item, period, records)


class CompletionRecordType(DjangoObjectType):
    class Meta:
        model = CompletionRecord
        fields = ("id", "item", "date", "created_at", "note", "value", "image_url")


class Query(graphene.ObjectType):
    items = graphene.List(HabitItemType, active_only=graphene.Boolean(required=False))
    item = graphene.Field(HabitItemType, id=graphene.ID(required=True))
    overall_statistics = graphene.Field(OverallStatisticsType, period=graphene.String(default_value="week"))
    today_summary = graphene.Field(TodaySummaryType)

    def resolve_items(self, info, active_only=None):
        user = info.context.user
        if user.is_anonymous:
            return HabitItem.objects.none()

        qs = HabitItem.objects.filter(owner=user).order_by("name")
        if active_only is True:
            qs = qs.filter(is_active=True)
        return qs.prefetch_related("records")

    def resolve_item(self, info, id):
        user = _require_user(info)
        return HabitItem.objects.filter(owner=user).prefetch_related("records").get(pk=id)

    def resolve_overall_statistics(self, info, period):
        user = _require_user(info)
        return _service().overall_statistics(user.pk, period)

    def resolve_today_summary(self, info):
        user = _require_user(info)
        return _service().today_summary(user.pk)


class CreateItem(graphene.Mutation):
    class Arguments:
        name = graphene.String(required=True)
        description = graphene.String(required=False)
        rule_kind = graphene.Int(required=False)
        repeat_days = graphene.List(graphene.Int, required=False)
        interval_days = graphene.Int(required=False)
        record_kind = graphene.Int(required=False)
        value_unit = graphene.String(required=False)

    item = graphene.Field(HabitItemType)

    def mutate(self, info, name, description="", rule_kind=0, repeat_days=None,
               interval_days=1, record_kind=0, value_unit=""):
        user = _require_user(info)

        # round-trip through the rule so stored fields are already clamped
        kind, days, interval = rule_from_fields(rule_kind, repeat_days, interval_days).to_fields()
        item = HabitItem.objects.create(
            owner=user,
            name=name,
            description=description or "",
            rule_kind=kind,
            repeat_days=days,
            interval_days=interval,
            record_kind=record_kind,
            value_unit=value_unit or "",
        )
        return CreateItem(item=item)


class UpdateItemRule(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)
        rule_kind = graphene.Int(required=True)
        repeat_days = graphene.List(graphene.Int, required=False)
        interval_days = graphene.Int(required=False)

    item = graphene.Field(HabitItemType)

    def mutate(self, info, id, rule_kind, repeat_days=None, interval_days=1):
        user = _require_user(info)
        item = HabitItem.objects.get(pk=id, owner=user)

        # the whole rule is replaced; past days are re-derived under the new one
        item.rule_kind, item.repeat_days, item.interval_days = rule_from_fields(
            rule_kind, repeat_days, interval_days
        ).to_fields()
        item.save(update_fields=["rule_kind", "repeat_days", "interval_days"])
        return UpdateItemRule(item=item)


class ToggleItemActive(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)
        is_active = graphene.Boolean(required=True)

    item = graphene.Field(HabitItemType)

    def mutate(self, info, id, is_active):
        user = _require_user(info)
        item = HabitItem.objects.get(pk=id, owner=user)
        item.is_active = is_active
        item.save(update_fields=["is_active"])
        return ToggleItemActive(item=item)


class CheckIn(graphene.Mutation):
    class Arguments:
        item_id = graphene.ID(required=True)
        date = graphene.Date(required=False)
        note = graphene.String(required=False)
        value = graphene.Float(required=False)
        image_url = graphene.String(required=False)

    record = graphene.Field(CompletionRecordType)
    created = graphene.Boolean(required=True)
    item = graphene.Field(HabitItemType)

    @classmethod
    def mutate(cls, root, info, item_id, date=None, note=None, value=None, image_url=None):
        user = _require_user(info)
        item = HabitItem.objects.get(pk=item_id, owner=user)
        record_date = date or timezone.localdate()

        payload = {"note": note or "", "value": value, "image_url": image_url or ""}
        record, created = CompletionRecord.objects.get_or_create(
            item=item,
            date=record_date,
            defaults=payload,
        )

        # one record per day: a repeated check-in only amends the payload
        if not created:
            amended = [key for key, val in (("note", note), ("value", value), ("image_url", image_url))
                       if val is not None]
            for key in amended:
                setattr(record, key, payload[key])
            if amended:
                record.save(update_fields=amended)

        logger.info("Check-in for item %s on %s (created=%s)", item.pk, record_date, created)
        return cls(record=record, created=created, item=item)


class CancelCheckIn(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)

    ok = graphene.Boolean(required=True)
    deleted_id = graphene.ID(required=True)

    def mutate(self, info, id):
        user = _require_user(info)
        record = CompletionRecord.objects.get(pk=id, item__owner=user)
        record.delete()
        logger.info("Cancelled check-in %s", id)
        return CancelCheckIn(ok=True, deleted_id=id)


class Mutation(graphene.ObjectType):
    create_item = CreateItem.Field()
    update_item_rule = UpdateItemRule.Field()
    toggle_item_active = ToggleItemActive.Field()
    check_in = CheckIn.Field()
    cancel_check_in = CancelCheckIn.Field()
