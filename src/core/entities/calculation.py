"""Calculation entity (cost sheet for an import/trade deal)."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.reminder import utcnow


class CalculationStatus(str, Enum):
    """Sales stage of a calculation."""

    DRAFT = "DRAFT"
    PROPOSAL_SENT = "PROPOSAL_SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Calculation(BaseModel):
    """
    Calculation as seen by the reminder engine.

    Only the fields needed to title follow-up reminders and to track the
    follow-up state are modelled here; cost lines live elsewhere.
    """

    id: str
    user_id: str
    name: str
    client_id: str | None = None
    client_name: str | None = None
    status: CalculationStatus = CalculationStatus.DRAFT
    sent_date: datetime | None = None
    reminder_active: bool = False
    next_reminder_date: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def display_client(self) -> str:
        return self.client_name or "client"
