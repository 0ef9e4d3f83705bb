"""
Abstract interfaces for storage providers.

Defines contracts for the reminder store and the calculation lookup the
reminder engine depends on.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from src.core.entities.calculation import Calculation
from src.core.entities.reminder import Reminder, ReminderStatus, ReminderType
from src.core.entities.reminder_query import PageRequest, ReminderFilters


class IReminderStore(ABC):
    """
    Abstract interface for reminder storage.

    Status changes are conditional updates so that concurrent sweeps and user
    actions never apply two transitions to the same row.
    """

    @abstractmethod
    async def create(self, reminder: Reminder) -> Reminder:
        """Insert a new reminder and assign its ID."""
        pass

    @abstractmethod
    async def create_follow_up(self, reminder: Reminder, sent_date: datetime) -> Reminder:
        """
        Insert the first occurrence of a calculation follow-up series.

        In the same transaction the calculation is marked PROPOSAL_SENT with
        the occurrence as its next reminder date. Raises
        CalculationNotFoundError, writing nothing, if the owner has no such
        calculation.
        """
        pass

    @abstractmethod
    async def get(self, reminder_id: int) -> Reminder | None:
        """Get reminder by ID, regardless of owner."""
        pass

    @abstractmethod
    async def get_for_owner(self, reminder_id: int, user_id: str) -> Reminder | None:
        """Get reminder by ID if owned by user_id."""
        pass

    @abstractmethod
    async def update_pending(self, reminder: Reminder) -> Reminder | None:
        """Persist edits if the row is still PENDING; None otherwise."""
        pass

    @abstractmethod
    async def close(
        self,
        reminder_id: int,
        user_id: str,
        target: ReminderStatus,
    ) -> Reminder | None:
        """
        Move an open (PENDING/SENT) reminder to a terminal status.

        Also cancels the other PENDING occurrences of its series. A
        calculation reminder also ends the calculation's follow-up. Returns
        None when no open reminder with that ID is owned by user_id.
        """
        pass

    @abstractmethod
    async def list_for_owner(
        self,
        user_id: str,
        filters: ReminderFilters,
        page: PageRequest,
    ) -> list[Reminder]:
        """List one page of an owner's reminders."""
        pass

    @abstractmethod
    async def count_for_owner(self, user_id: str, filters: ReminderFilters) -> int:
        """Count an owner's reminders matching filters."""
        pass

    @abstractmethod
    async def count_overdue(self, user_id: str, now: datetime) -> int:
        """Count PENDING reminders scheduled before now."""
        pass

    @abstractmethod
    async def count_pending_by_type(self, user_id: str) -> dict[ReminderType, int]:
        """Group PENDING reminders by type (absent types omitted)."""
        pass

    @abstractmethod
    async def list_upcoming(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        limit: int,
    ) -> list[Reminder]:
        """PENDING reminders with start <= scheduled_date <= end, ascending."""
        pass

    @abstractmethod
    async def max_id(self) -> int:
        """Highest reminder ID currently stored (0 when empty)."""
        pass

    @abstractmethod
    async def list_due(
        self,
        now: datetime,
        after_id: int,
        max_id: int,
        limit: int,
    ) -> list[Reminder]:
        """PENDING reminders due by now with after_id < id <= max_id, by ID."""
        pass

    @abstractmethod
    async def mark_sent(
        self, reminder_id: int, now: datetime
    ) -> tuple[Reminder, Reminder | None] | None:
        """
        Atomically move a PENDING reminder to SENT and insert its successor.

        A calculation series also moves the calculation's next reminder
        date to the successor, or ends its follow-up after the last one.

        Returns (sent, successor) or None if the row was no longer PENDING.
        """
        pass


class ICalculationStore(ABC):
    """Abstract interface for the calculation lookup used by follow-ups."""

    @abstractmethod
    async def create(self, calculation: Calculation) -> Calculation:
        """Insert a calculation."""
        pass

    @abstractmethod
    async def get_for_owner(self, calculation_id: str, user_id: str) -> Calculation | None:
        """Get calculation by ID if owned by user_id."""
        pass

