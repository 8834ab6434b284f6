from __future__ import annotations
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from tracking.choices import RecordKind, RuleKind


class HabitItem(models.Model):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='habit_items',
    )
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True)
    rule_kind = models.PositiveSmallIntegerField(choices=RuleKind.choices, default=RuleKind.DAILY)
    # comma separated ISO weekdays, only read for custom rules
    repeat_days = models.CharField(max_length=20, blank=True)
    interval_days = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    record_kind = models.PositiveSmallIntegerField(choices=RecordKind.choices, default=RecordKind.CHECK)
    value_unit = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['owner', 'name'], name='unique_item_name_per_user')
        ]

    if TYPE_CHECKING:
        # Django dynamically injects this via related_name="records"
        records = None

    def __str__(self) -> str:
        return self.name


class CompletionRecord(models.Model):
    item = models.ForeignKey(HabitItem, on_delete=models.CASCADE,
                             related_name="records")
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)
    note = models.TextField(blank=True)
    value = models.FloatField(null=True, blank=True)
    image_url = models.URLField(blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["item", "date"], name="unique_record_per_item_per_day")
        ]
        ordering = ["-date", "-created_at"]

    def __str__(self) -> str:
        return f"{self.item.name} @ {self.date}"
