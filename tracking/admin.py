from django.contrib import admin

from .models import CompletionRecord, HabitItem


@admin.register(HabitItem)
class HabitItemAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "rule_kind", "is_active", "created_at")
    list_filter = ("rule_kind", "is_active")


@admin.register(CompletionRecord)
class CompletionRecordAdmin(admin.ModelAdmin):
    list_display = ("item", "date", "value", "created_at")
    date_hierarchy = "date"
