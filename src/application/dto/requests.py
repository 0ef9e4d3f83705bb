"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.core.entities.reminder import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    RelatedType,
    ReminderType,
)


class CreateReminderRequest(BaseModel):
    """Request for creating an ad-hoc reminder."""

    related_id: str = Field(
        ...,
        min_length=1,
        description="ID of the calculation, order or client",
        examples=["calc_42"],
    )
    related_type: RelatedType = Field(..., description="Kind of related record")
    reminder_type: ReminderType = Field(..., description="What the reminder asks for")
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    scheduled_date: datetime | None = Field(
        default=None,
        description="When the reminder becomes due (default: now)",
    )
    frequency: int | None = Field(
        default=None, ge=1, le=30, description="Days between occurrences"
    )
    max_reminders: int | None = Field(
        default=None, ge=1, le=50, description="Occurrence cap of the series"
    )
    recurring: bool = Field(
        default=False,
        description="Start a recurring series instead of a one-off reminder",
    )


class FollowUpReminderRequest(BaseModel):
    """Request for scheduling follow-ups on a sent proposal."""

    calculation_id: str = Field(..., min_length=1, examples=["calc_42"])
    frequency: int | None = Field(
        default=None, ge=1, le=30, description="Days between follow-ups"
    )
    max_reminders: int | None = Field(
        default=None, ge=1, le=50, description="Maximum number of follow-ups"
    )


class UpdateReminderRequest(BaseModel):
    """
    Request for editing a PENDING reminder.

    Omitted fields are unchanged. A null description clears it.
    """

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    scheduled_date: datetime | None = None
    frequency: int | None = Field(default=None, ge=1, le=30)
    max_reminders: int | None = Field(default=None, ge=1, le=50)
