"""Reminder entity and its lifecycle rules."""

from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000
FREQUENCY_RANGE = (1, 30)
MAX_REMINDERS_RANGE = (1, 50)


def utcnow() -> datetime:
    """Current time as naive UTC, the storage representation."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


class RelatedType(str, Enum):
    """Kind of business record a reminder points at."""

    CALCULATION = "CALCULATION"
    ORDER = "ORDER"
    CLIENT = "CLIENT"


class ReminderType(str, Enum):
    """What the reminder asks the manager to do."""

    FOLLOW_UP = "FOLLOW_UP"
    CALL_CLIENT = "CALL_CLIENT"
    SEND_PROPOSAL = "SEND_PROPOSAL"
    CHECK_PAYMENT = "CHECK_PAYMENT"
    DELIVERY_REMINDER = "DELIVERY_REMINDER"
    GENERAL = "GENERAL"


class ReminderStatus(str, Enum):
    """Lifecycle status."""

    PENDING = "PENDING"
    SENT = "SENT"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ALLOWED_TRANSITIONS: dict[ReminderStatus, frozenset[ReminderStatus]] = {
    ReminderStatus.PENDING: frozenset(
        {ReminderStatus.SENT, ReminderStatus.COMPLETED, ReminderStatus.CANCELLED}
    ),
    ReminderStatus.SENT: frozenset({ReminderStatus.COMPLETED, ReminderStatus.CANCELLED}),
    ReminderStatus.COMPLETED: frozenset(),
    ReminderStatus.CANCELLED: frozenset(),
}

# Statuses from which a user may still complete or cancel
OPEN_STATUSES: tuple[ReminderStatus, ...] = (ReminderStatus.PENDING, ReminderStatus.SENT)


class Reminder(BaseModel):
    """
    A scheduled, user-owned notification tied to a calculation, order or client.

    A reminder with a series_id is one occurrence of a recurring follow-up
    series. Successors are not pre-materialized: the due-sweep derives the
    next occurrence from the one it just sent (see next_occurrence).
    """

    id: int | None = None
    user_id: str
    related_id: str
    related_type: RelatedType
    reminder_type: ReminderType
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    scheduled_date: datetime
    frequency: int = Field(default=3, ge=FREQUENCY_RANGE[0], le=FREQUENCY_RANGE[1])
    max_reminders: int = Field(
        default=10, ge=MAX_REMINDERS_RANGE[0], le=MAX_REMINDERS_RANGE[1]
    )
    occurrence: int = Field(default=1, ge=1)
    series_id: str | None = None
    status: ReminderStatus = ReminderStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("scheduled_date", "created_at", "updated_at")
    @classmethod
    def normalize_datetime(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_occurrence_cap(self) -> "Reminder":
        if self.occurrence > self.max_reminders:
            raise ValueError(
                f"occurrence {self.occurrence} exceeds max_reminders {self.max_reminders}"
            )
        return self

    @property
    def is_recurring(self) -> bool:
        """Check if the reminder belongs to a follow-up series."""
        return self.series_id is not None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ReminderStatus.COMPLETED, ReminderStatus.CANCELLED)

    @property
    def is_overdue(self) -> bool:
        """Check if the reminder is still pending past its scheduled date."""
        return self.status == ReminderStatus.PENDING and self.scheduled_date < utcnow()

    def can_transition_to(self, target: ReminderStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def next_occurrence(self, now: datetime | None = None) -> "Reminder | None":
        """
        Build the successor of this occurrence, or None when the series ends.

        Only series members below their cap have a successor. The successor is
        a new PENDING record scheduled frequency days after this one.
        """
        if not self.is_recurring or self.occurrence >= self.max_reminders:
            return None

        stamp = now or utcnow()
        return self.model_copy(
            update={
                "id": None,
                "status": ReminderStatus.PENDING,
                "occurrence": self.occurrence + 1,
                "scheduled_date": self.scheduled_date + timedelta(days=self.frequency),
                "created_at": stamp,
                "updated_at": stamp,
            }
        )
