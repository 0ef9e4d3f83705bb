"""
Reminder Engine.

Creates ad-hoc reminders and follow-up series, lists and edits them,
moves them to their terminal statuses and aggregates dashboard statistics.
The due-sweep lives in the application layer and shares the store.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, TypeVar

from src.config import get_logger
from src.config.settings import ReminderSettings
from src.core.entities.reminder import (
    DESCRIPTION_MAX_LENGTH,
    FREQUENCY_RANGE,
    MAX_REMINDERS_RANGE,
    TITLE_MAX_LENGTH,
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
)
from src.core.exceptions import (
    CalculationNotFoundError,
    DependencyFailureError,
    InvalidStateError,
    ReminderNotFoundError,
    ValidationError,
)
from src.core.interfaces.storage import ICalculationStore, IReminderStore

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)


@dataclass(frozen=True)
class ReminderOptions:
    """Recurrence options; None falls back to the configured defaults."""

    frequency: int | None = None
    max_reminders: int | None = None
    recurring: bool = False


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class ReminderUpdate:
    """
    Editable fields of a PENDING reminder.

    Fields left UNSET are unchanged. An explicit None clears description;
    the other fields cannot be cleared.
    """

    title: str | None = UNSET
    description: str | None = UNSET
    scheduled_date: datetime | None = UNSET
    frequency: int | None = UNSET
    max_reminders: int | None = UNSET


def _require_enum(enum_cls: type[E], value: E | str, field: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(
            field,
            f"must be one of {', '.join(m.value for m in enum_cls)}",
            value,
        ) from None


def _check_range(field: str, value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    if not low <= value <= high:
        raise ValidationError(field, f"must be between {low} and {high}", value)
    return value


def _check_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("title", "must not be empty")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError("title", f"must be at most {TITLE_MAX_LENGTH} characters")
    return title


def _check_description(description: str | None) -> str | None:
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            "description", f"must be at most {DESCRIPTION_MAX_LENGTH} characters"
        )
    return description


class ReminderService:
    """
    Layer-pure reminder engine.

    Every operation is scoped to the owning user. Status changes go through
    the store's guarded updates; on a lost guard the service re-reads the row
    to tell NotFound from InvalidState.
    """

    def __init__(
        self,
        reminder_store: IReminderStore,
        calculation_store: ICalculationStore | None = None,
        settings: ReminderSettings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._reminders = reminder_store
        self._calculations = calculation_store
        self._settings = settings or ReminderSettings()
        self._clock = clock

    def _check_not_past(self, scheduled_date: datetime, now: datetime) -> datetime:
        scheduled_date = to_naive_utc(scheduled_date)
        if scheduled_date < now:
            raise ValidationError(
                "scheduled_date", "must not be in the past", scheduled_date.isoformat()
            )
        return scheduled_date

    def _resolve_options(self, options: ReminderOptions) -> tuple[int, int]:
        frequency = (
            options.frequency
            if options.frequency is not None
            else self._settings.default_frequency
        )
        max_reminders = (
            options.max_reminders
            if options.max_reminders is not None
            else self._settings.default_max_reminders
        )
        return (
            _check_range("frequency", frequency, FREQUENCY_RANGE),
            _check_range("max_reminders", max_reminders, MAX_REMINDERS_RANGE),
        )

    async def create_reminder(
        self,
        owner: str,
        related_id: str,
        related_type: RelatedType | str,
        reminder_type: ReminderType | str,
        title: str,
        description: str | None = None,
        scheduled_date: datetime | None = None,
        options: ReminderOptions | None = None,
    ) -> Reminder:
        """
        Create a PENDING reminder with occurrence 1.

        Args:
            owner: Owning user ID
            related_id: ID of the calculation, order or client
            related_type: Kind of the related record
            reminder_type: What the reminder asks for
            title: Non-empty title
            description: Optional free text
            scheduled_date: When it becomes due (default: now)
            options: Frequency, cap and whether this starts a series

        Returns:
            The stored reminder with its assigned ID

        Raises:
            ValidationError: on unknown enums, bad bounds or a past date
        """
        options = options or ReminderOptions()
        now = self._clock()

        if not related_id:
            raise ValidationError("related_id", "must not be empty")
        related_type = _require_enum(RelatedType, related_type, "related_type")
        reminder_type = _require_enum(ReminderType, reminder_type, "reminder_type")
        title = _check_title(title)
        description = _check_description(description)
        frequency, max_reminders = self._resolve_options(options)
        scheduled = (
            self._check_not_past(scheduled_date, now) if scheduled_date else now
        )

        reminder = Reminder(
            user_id=owner,
            related_id=related_id,
            related_type=related_type,
            reminder_type=reminder_type,
            title=title,
            description=description,
            scheduled_date=scheduled,
            frequency=frequency,
            max_reminders=max_reminders,
            series_id=str(uuid.uuid4()) if options.recurring else None,
            created_at=now,
            updated_at=now,
        )
        return await self._reminders.create(reminder)

    async def schedule_follow_up_reminders(
        self,
        calculation_id: str,
        owner: str,
        options: ReminderOptions | None = None,
    ) -> Reminder:
        """
        Start a follow-up series for a calculation sent to a client.

        The first occurrence is due frequency days from now; later ones are
        generated by the due-sweep. The occurrence and the calculation's
        follow-up state are stored together or not at all.

        Raises:
            CalculationNotFoundError: calculation missing or not owned
            DependencyFailureError: calculation lookup failed
            ValidationError: bad frequency or cap
        """
        options = options or ReminderOptions()
        frequency, max_reminders = self._resolve_options(options)

        if self._calculations is None:
            raise DependencyFailureError("calculations", "no calculation store configured")
        try:
            calculation = await self._calculations.get_for_owner(calculation_id, owner)
        except Exception as e:
            logger.error(
                "calculation_lookup_failed",
                calculation_id=calculation_id,
                error=str(e),
            )
            raise DependencyFailureError("calculations", str(e)) from e

        if calculation is None:
            raise CalculationNotFoundError(calculation_id)

        now = self._clock()
        scheduled = now + timedelta(days=frequency)
        client = calculation.display_client

        reminder = Reminder(
            user_id=owner,
            related_id=calculation.id,
            related_type=RelatedType.CALCULATION,
            reminder_type=ReminderType.FOLLOW_UP,
            title=f'Follow up with {client} on proposal "{calculation.name}"'[
                :TITLE_MAX_LENGTH
            ],
            description=(
                f'Proposal "{calculation.name}" was sent to {client}. '
                "Contact the client to confirm its status."
            )[:DESCRIPTION_MAX_LENGTH],
            scheduled_date=scheduled,
            frequency=frequency,
            max_reminders=max_reminders,
            series_id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
        )
        created = await self._reminders.create_follow_up(reminder, sent_date=now)

        logger.info(
            "follow_up_scheduled",
            calculation_id=calculation.id,
            reminder_id=created.id,
            series_id=created.series_id,
            frequency=frequency,
            max_reminders=max_reminders,
        )
        return created

    async def get_reminders_for_user(
        self,
        owner: str,
        filters: ReminderFilters | None = None,
        page: PageRequest | None = None,
    ) -> ReminderPage:
        """List one page of the owner's reminders with pagination metadata."""
        filters = filters or ReminderFilters()
        page = page or PageRequest(limit=self._settings.default_page_size)

        if page.page < 1:
            raise ValidationError("page", "must be at least 1", page.page)
        if not 1 <= page.limit <= self._settings.max_page_size:
            raise ValidationError(
                "limit", f"must be between 1 and {self._settings.max_page_size}", page.limit
            )

        reminders = await self._reminders.list_for_owner(owner, filters, page)
        total = await self._reminders.count_for_owner(owner, filters)
        return ReminderPage(
            reminders=reminders,
            page=page.page,
            limit=page.limit,
            total_count=total,
        )

    async def get_reminder(self, reminder_id: int, owner: str) -> Reminder:
        reminder = await self._reminders.get_for_owner(reminder_id, owner)
        if reminder is None:
            raise ReminderNotFoundError(reminder_id)
        return reminder

    async def update_reminder(
        self,
        reminder_id: int,
        owner: str,
        changes: ReminderUpdate,
    ) -> Reminder:
        """
        Edit a reminder while it is still PENDING.

        Raises:
            ReminderNotFoundError: reminder missing or not owned
            InvalidStateError: reminder is no longer PENDING
            ValidationError: invalid new values
        """
        reminder = await self.get_reminder(reminder_id, owner)
        if reminder.status != ReminderStatus.PENDING:
            raise InvalidStateError(reminder_id, reminder.status.value, "update")

        now = self._clock()
        for name in ("title", "scheduled_date", "frequency", "max_reminders"):
            if getattr(changes, name) is None:
                raise ValidationError(name, "must not be null")

        if changes.title is not UNSET:
            reminder.title = _check_title(changes.title)
        if changes.description is not UNSET:
            reminder.description = _check_description(changes.description)
        if changes.scheduled_date is not UNSET:
            reminder.scheduled_date = self._check_not_past(changes.scheduled_date, now)
        if changes.frequency is not UNSET:
            reminder.frequency = _check_range("frequency", changes.frequency, FREQUENCY_RANGE)
        if changes.max_reminders is not UNSET:
            max_reminders = _check_range(
                "max_reminders", changes.max_reminders, MAX_REMINDERS_RANGE
            )
            if max_reminders < reminder.occurrence:
                raise ValidationError(
                    "max_reminders",
                    f"must not be below the current occurrence {reminder.occurrence}",
                    max_reminders,
                )
            reminder.max_reminders = max_reminders

        updated = await self._reminders.update_pending(reminder)
        if updated is None:
            # Lost a race with the sweep or another user action
            await self._raise_for_missing(reminder_id, owner, "update")
        return updated

    async def complete_reminder(self, reminder_id: int, owner: str) -> Reminder:
        """Mark a PENDING or SENT reminder COMPLETED and close its series."""
        return await self._close(reminder_id, owner, ReminderStatus.COMPLETED, "complete")

    async def cancel_reminder(self, reminder_id: int, owner: str) -> Reminder:
        """Soft-delete a PENDING or SENT reminder and close its series."""
        return await self._close(reminder_id, owner, ReminderStatus.CANCELLED, "cancel")

    async def _close(
        self,
        reminder_id: int,
        owner: str,
        target: ReminderStatus,
        action: str,
    ) -> Reminder:
        closed = await self._reminders.close(reminder_id, owner, target)
        if closed is None:
            await self._raise_for_missing(reminder_id, owner, action)
        return closed

    async def _raise_for_missing(self, reminder_id: int, owner: str, action: str) -> None:
        current = await self._reminders.get_for_owner(reminder_id, owner)
        if current is None:
            raise ReminderNotFoundError(reminder_id)
        raise InvalidStateError(reminder_id, current.status.value, action)

    async def get_statistics(self, owner: str) -> ReminderStats:
        """Dashboard counts, per-type breakdown and upcoming reminders."""
        now = self._clock()
        window_end = now + timedelta(days=self._settings.upcoming_window_days)

        total = await self._reminders.count_for_owner(owner, ReminderFilters())
        pending = await self._reminders.count_for_owner(
            owner, ReminderFilters(status=ReminderStatus.PENDING)
        )
        overdue = await self._reminders.count_overdue(owner, now)
        counts = await self._reminders.count_pending_by_type(owner)
        upcoming = await self._reminders.list_upcoming(
            owner, now, window_end, self._settings.upcoming_limit
        )

        return ReminderStats(
            total=total,
            pending=pending,
            overdue=overdue,
            by_type={t: counts.get(t, 0) for t in ReminderType},
            upcoming=upcoming,
        )
