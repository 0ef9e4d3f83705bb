"""Response DTOs for API endpoints.

Pydantic v2 models for API responses.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.application.use_cases.process_scheduled_reminders import SweepResult
from src.core.entities.reminder import Reminder
from src.core.entities.reminder_query import ReminderPage, ReminderStats


class ReminderResponse(BaseModel):
    """Reminder in response."""

    id: int
    user_id: str
    related_id: str
    related_type: str
    reminder_type: str
    title: str
    description: str | None = None
    scheduled_date: datetime
    frequency: int
    max_reminders: int
    occurrence: int
    series_id: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, reminder: Reminder) -> "ReminderResponse":
        return cls(
            id=reminder.id,
            user_id=reminder.user_id,
            related_id=reminder.related_id,
            related_type=reminder.related_type.value,
            reminder_type=reminder.reminder_type.value,
            title=reminder.title,
            description=reminder.description,
            scheduled_date=reminder.scheduled_date,
            frequency=reminder.frequency,
            max_reminders=reminder.max_reminders,
            occurrence=reminder.occurrence,
            series_id=reminder.series_id,
            status=reminder.status.value,
            created_at=reminder.created_at,
            updated_at=reminder.updated_at,
        )


class PaginationResponse(BaseModel):
    """Pagination metadata for 1-based pages."""

    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class ReminderListResponse(BaseModel):
    """One page of reminders."""

    reminders: list[ReminderResponse] = Field(default=[])
    pagination: PaginationResponse

    @classmethod
    def from_page(cls, page: ReminderPage) -> "ReminderListResponse":
        return cls(
            reminders=[ReminderResponse.from_entity(r) for r in page.reminders],
            pagination=PaginationResponse(
                page=page.page,
                limit=page.limit,
                total_count=page.total_count,
                total_pages=page.total_pages,
                has_next_page=page.has_next_page,
                has_prev_page=page.has_prev_page,
            ),
        )


class ReminderStatsResponse(BaseModel):
    """Dashboard statistics."""

    total: int = Field(..., ge=0)
    pending: int = Field(..., ge=0)
    overdue: int = Field(..., ge=0)
    by_type: dict[str, int] = Field(..., description="PENDING count per reminder type")
    upcoming: list[ReminderResponse] = Field(default=[])

    @classmethod
    def from_stats(cls, stats: ReminderStats) -> "ReminderStatsResponse":
        return cls(
            total=stats.total,
            pending=stats.pending,
            overdue=stats.overdue,
            by_type={t.value: n for t, n in stats.by_type.items()},
            upcoming=[ReminderResponse.from_entity(r) for r in stats.upcoming],
        )


class SweepErrorResponse(BaseModel):
    reminder_id: int | None = None
    error: str


class SweepResultResponse(BaseModel):
    """Summary of one due-sweep."""

    processed: int
    sent: int
    next_occurrences_created: int
    skipped: int
    failed: int
    errors: list[SweepErrorResponse] = Field(default=[])
    started_at: datetime | None = None
    duration_ms: int

    @classmethod
    def from_result(cls, result: SweepResult) -> "SweepResultResponse":
        return cls(
            processed=result.processed,
            sent=result.sent,
            next_occurrences_created=result.next_occurrences_created,
            skipped=result.skipped,
            failed=result.failed,
            errors=[SweepErrorResponse(**e) for e in result.errors],
            started_at=result.started_at,
            duration_ms=result.duration_ms,
        )


class ComponentHealthResponse(BaseModel):
    """Health of one dependency."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ComponentHealthResponse | None = None
    scheduler_running: bool | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. REMINDER_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
