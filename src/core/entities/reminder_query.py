"""Query, paging and result shapes for reminder listings."""

import math
from dataclasses import dataclass, field
from enum import Enum

from src.core.entities.reminder import RelatedType, Reminder, ReminderStatus, ReminderType


class SortField(str, Enum):
    """Columns a reminder listing can be ordered by."""

    CREATED_AT = "created_at"
    SCHEDULED_DATE = "scheduled_date"
    UPDATED_AT = "updated_at"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ReminderFilters:
    """Optional filters, combined with logical AND."""

    status: ReminderStatus | None = None
    related_type: RelatedType | None = None
    reminder_type: ReminderType | None = None


@dataclass(frozen=True)
class PageRequest:
    """1-based page request."""

    page: int = 1
    limit: int = 20
    sort_by: SortField = SortField.SCHEDULED_DATE
    sort_order: SortOrder = SortOrder.ASC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class ReminderPage:
    """One page of reminders with pagination metadata."""

    reminders: list[Reminder]
    page: int
    limit: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1


@dataclass
class ReminderStats:
    """Dashboard statistics for one owner."""

    total: int = 0
    pending: int = 0
    overdue: int = 0
    by_type: dict[ReminderType, int] = field(
        default_factory=lambda: {t: 0 for t in ReminderType}
    )
    upcoming: list[Reminder] = field(default_factory=list)
