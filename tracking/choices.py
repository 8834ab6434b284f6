from django.db import models


class RuleKind(models.IntegerChoices):
    DAILY = 0, "Daily"
    WEEKDAY = 1, "Weekdays"
    WEEKEND = 2, "Weekends"
    CUSTOM = 3, "Custom weekdays"
    INTERVAL = 4, "Every N days"
    FREE = 5, "Free logging"


class RecordKind(models.IntegerChoices):
    CHECK = 0, "Check"
    TEXT = 1, "Text"
    NUMBER = 2, "Number"
