"""Core domain entities."""

from src.core.entities.calculation import Calculation, CalculationStatus
from src.core.entities.reminder import (
    ALLOWED_TRANSITIONS,
    OPEN_STATUSES,
    RelatedType,
    Reminder,
    ReminderStatus,
    ReminderType,
    to_naive_utc,
    utcnow,
)
from src.core.entities.reminder_query import (
    PageRequest,
    ReminderFilters,
    ReminderPage,
    ReminderStats,
    SortField,
    SortOrder,
)

__all__ = [
    "Calculation",
    "CalculationStatus",
    "Reminder",
    "ReminderStatus",
    "ReminderType",
    "RelatedType",
    "ALLOWED_TRANSITIONS",
    "OPEN_STATUSES",
    "to_naive_utc",
    "utcnow",
    "PageRequest",
    "ReminderFilters",
    "ReminderPage",
    "ReminderStats",
    "SortField",
    "SortOrder",
]
