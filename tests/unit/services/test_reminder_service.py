"""Tests for ReminderService."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.config.settings import ReminderSettings
from src.core.entities import Calculation, RelatedType, ReminderStatus, ReminderType
from src.core.entities.reminder_query import PageRequest, ReminderFilters
from src.core.exceptions import (
    CalculationNotFoundError,
    DependencyFailureError,
    InvalidStateError,
    ReminderNotFoundError,
    ValidationError,
)
from src.core.services.reminder_service import (
    UNSET,
    ReminderOptions,
    ReminderService,
    ReminderUpdate,
)

NOW = datetime(2026, 6, 1, 12, 0)


def _make_stores():
    """Create mock reminder and calculation stores."""
    reminder_store = AsyncMock()

    async def mock_create(reminder):
        reminder.id = 42
        return reminder

    async def mock_create_follow_up(reminder, sent_date):
        return await mock_create(reminder)

    reminder_store.create = AsyncMock(side_effect=mock_create)
    reminder_store.create_follow_up = AsyncMock(side_effect=mock_create_follow_up)
    calculation_store = AsyncMock()
    return reminder_store, calculation_store


def _service(reminder_store, calculation_store=None, **settings) -> ReminderService:
    return ReminderService(
        reminder_store,
        calculation_store,
        settings=ReminderSettings(**settings),
        clock=lambda: NOW,
    )


class TestCreateReminder:
    @pytest.mark.asyncio
    async def test_defaults(self):
        """Unset options fall back to configured defaults, due now."""
        reminder_store, _ = _make_stores()
        svc = _service(reminder_store)

        reminder = await svc.create_reminder(
            "user-1", "client-7", "CLIENT", "CALL_CLIENT", "  Call Ivan  "
        )

        assert reminder.id == 42
        assert reminder.title == "Call Ivan"
        assert reminder.related_type == RelatedType.CLIENT
        assert reminder.reminder_type == ReminderType.CALL_CLIENT
        assert reminder.scheduled_date == NOW
        assert reminder.frequency == 3
        assert reminder.max_reminders == 10
        assert reminder.occurrence == 1
        assert reminder.status == ReminderStatus.PENDING
        assert reminder.series_id is None

    @pytest.mark.asyncio
    async def test_recurring_gets_series(self):
        reminder_store, _ = _make_stores()
        svc = _service(reminder_store)

        reminder = await svc.create_reminder(
            "user-1",
            "order-1",
            RelatedType.ORDER,
            ReminderType.DELIVERY_REMINDER,
            "Check delivery",
            scheduled_date=NOW + timedelta(days=2),
            options=ReminderOptions(frequency=7, max_reminders=3, recurring=True),
        )

        assert reminder.series_id is not None
        assert reminder.frequency == 7
        assert reminder.max_reminders == 3

    @pytest.mark.asyncio
    async def test_past_date_rejected(self):
        reminder_store, _ = _make_stores()
        svc = _service(reminder_store)

        with pytest.raises(ValidationError) as exc:
            await svc.create_reminder(
                "user-1",
                "calc-1",
                "CALCULATION",
                "GENERAL",
                "Late",
                scheduled_date=NOW - timedelta(minutes=1),
            )

        assert exc.value.details["field"] == "scheduled_date"
        reminder_store.create.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"related_type": "INVOICE"}, "related_type"),
            ({"reminder_type": "EMAIL"}, "reminder_type"),
            ({"title": "   "}, "title"),
            ({"title": "x" * 256}, "title"),
            ({"description": "d" * 1001}, "description"),
            ({"related_id": ""}, "related_id"),
            ({"options": ReminderOptions(frequency=0)}, "frequency"),
            ({"options": ReminderOptions(frequency=31)}, "frequency"),
            ({"options": ReminderOptions(max_reminders=51)}, "max_reminders"),
        ],
    )
    async def test_invalid_input(self, kwargs, field):
        reminder_store, _ = _make_stores()
        svc = _service(reminder_store)
        args = {
            "owner": "user-1",
            "related_id": "calc-1",
            "related_type": "CALCULATION",
            "reminder_type": "GENERAL",
            "title": "Title",
        }
        args.update(kwargs)

        with pytest.raises(ValidationError) as exc:
            await svc.create_reminder(**args)

        assert exc.value.details["field"] == field


class TestScheduleFollowUp:
    @pytest.mark.asyncio
    async def test_creates_first_occurrence(self, sample_calculation: Calculation):
        reminder_store, calculation_store = _make_stores()
        calculation_store.get_for_owner.return_value = sample_calculation
        svc = _service(reminder_store, calculation_store)

        reminder = await svc.schedule_follow_up_reminders(
            "calc-1", "user-1", ReminderOptions(frequency=5, max_reminders=4)
        )

        assert reminder.title == (
            'Follow up with Acme Trading on proposal "Container 40ft electronics"'
        )
        assert "Acme Trading" in reminder.description
        assert reminder.related_type == RelatedType.CALCULATION
        assert reminder.reminder_type == ReminderType.FOLLOW_UP
        assert reminder.scheduled_date == NOW + timedelta(days=5)
        assert reminder.occurrence == 1
        assert reminder.max_reminders == 4
        assert reminder.series_id is not None
        reminder_store.create_follow_up.assert_awaited_once_with(reminder, sent_date=NOW)
        reminder_store.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_each_call_starts_new_series(self, sample_calculation: Calculation):
        reminder_store, calculation_store = _make_stores()
        calculation_store.get_for_owner.return_value = sample_calculation
        svc = _service(reminder_store, calculation_store)

        first = await svc.schedule_follow_up_reminders("calc-1", "user-1")
        second = await svc.schedule_follow_up_reminders("calc-1", "user-1")

        assert first.series_id != second.series_id

    @pytest.mark.asyncio
    async def test_missing_calculation(self):
        reminder_store, calculation_store = _make_stores()
        calculation_store.get_for_owner.return_value = None
        svc = _service(reminder_store, calculation_store)

        with pytest.raises(CalculationNotFoundError):
            await svc.schedule_follow_up_reminders("calc-404", "user-1")
        reminder_store.create_follow_up.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_failure_is_dependency_failure(self):
        reminder_store, calculation_store = _make_stores()
        calculation_store.get_for_owner.side_effect = RuntimeError("database is locked")
        svc = _service(reminder_store, calculation_store)

        with pytest.raises(DependencyFailureError):
            await svc.schedule_follow_up_reminders("calc-1", "user-1")
        reminder_store.create_follow_up.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_calculation_store(self):
        reminder_store, _ = _make_stores()
        svc = _service(reminder_store)

        with pytest.raises(DependencyFailureError):
            await svc.schedule_follow_up_reminders("calc-1", "user-1")


class TestListing:
    @pytest.mark.asyncio
    async def test_page_metadata(self, make_reminder):
        reminder_store, _ = _make_stores()
        reminder_store.list_for_owner.return_value = [make_reminder(id=1)]
        reminder_store.count_for_owner.return_value = 41
        svc = _service(reminder_store)

        page = await svc.get_reminders_for_user(
            "user-1", ReminderFilters(status=ReminderStatus.PENDING), PageRequest(page=2)
        )

        assert page.total_count == 41
        assert page.total_pages == 3
        assert page.has_next_page is True
        assert page.has_prev_page is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "page",
        [PageRequest(page=0), PageRequest(limit=0), PageRequest(limit=101)],
    )
    async def test_bounds(self, page):
        reminder_store, _ = _make_stores()
        svc = _service(reminder_store)

        with pytest.raises(ValidationError):
            await svc.get_reminders_for_user("user-1", page=page)
        reminder_store.list_for_owner.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_reminder_not_owned(self):
        reminder_store, _ = _make_stores()
        reminder_store.get_for_owner.return_value = None
        svc = _service(reminder_store)

        with pytest.raises(ReminderNotFoundError):
            await svc.get_reminder(7, "user-1")


class TestUpdate:
    @pytest.mark.asyncio
    async def test_applies_changes(self, make_reminder):
        reminder_store, _ = _make_stores()
        reminder_store.get_for_owner.return_value = make_reminder(id=5)
        reminder_store.update_pending.side_effect = lambda r: r
        svc = _service(reminder_store)

        updated = await svc.update_reminder(
            5,
            "user-1",
            ReminderUpdate(title="New", scheduled_date=NOW + timedelta(days=1), frequency=10),
        )

        assert updated.title == "New"
        assert updated.scheduled_date == NOW + timedelta(days=1)
        assert updated.frequency == 10
        assert updated.description == "Ask about the proposal"

    @pytest.mark.asyncio
    async def test_null_description_clears_it(self, make_reminder):
        reminder_store, _ = _make_stores()
        reminder_store.get_for_owner.return_value = make_reminder(id=5)
        reminder_store.update_pending.side_effect = lambda r: r
        svc = _service(reminder_store)

        updated = await svc.update_reminder(5, "user-1", ReminderUpdate(description=None))

        assert updated.description is None
        assert updated.title == "Follow up with Acme"

    @pytest.mark.asyncio
    async def test_omitted_fields_unchanged(self, make_reminder):
        reminder_store, _ = _make_stores()
        original = make_reminder(id=5)
        reminder_store.get_for_owner.return_value = original.model_copy()
        reminder_store.update_pending.side_effect = lambda r: r
        svc = _service(reminder_store)

        updated = await svc.update_reminder(5, "user-1", ReminderUpdate())

        assert updated.description == original.description
        assert updated.scheduled_date == original.scheduled_date
        assert ReminderUpdate().description is UNSET

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["title", "scheduled_date", "frequency", "max_reminders"])
    async def test_null_required_field_rejected(self, make_reminder, field):
        reminder_store, _ = _make_stores()
        reminder_store.get_for_owner.return_value = make_reminder(id=5)
        svc = _service(reminder_store)

        with pytest.raises(ValidationError) as exc:
            await svc.update_reminder(5, "user-1", ReminderUpdate(**{field: None}))

        assert exc.value.details["field"] == field
        reminder_store.update_pending.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_pending(self, make_reminder):
        reminder_store, _ = _make_stores()
        reminder_store.get_for_owner.return_value = make_reminder(
            id=5, status=ReminderStatus.SENT
        )
        svc = _service(reminder_store)

        with pytest.raises(InvalidStateError):
            await svc.update_reminder(5, "user-1", ReminderUpdate(title="New"))

    @pytest.mark.asyncio
    async def test_cap_below_occurrence(self, make_reminder):
        reminder_store, _ = _make_stores()
        reminder_store.get_for_owner.return_value = make_reminder(
            id=5, series_id="s-1", occurrence=3
        )
        svc = _service(reminder_store)

        with pytest.raises(ValidationError) as exc:
            await svc.update_reminder(5, "user-1", ReminderUpdate(max_reminders=2))
        assert exc.value.details["field"] == "max_reminders"

    @pytest.mark.asyncio
    async def test_lost_race_reports_current_state(self, make_reminder):
        """Sweep sent the reminder between the read and the guarded write."""
        reminder_store, _ = _make_stores()
        reminder_store.get_for_owner.side_effect = [
            make_reminder(id=5),
            make_reminder(id=5, status=ReminderStatus.SENT),
        ]
        reminder_store.update_pending.return_value = None
        svc = _service(reminder_store)

        with pytest.raises(InvalidStateError) as exc:
            await svc.update_reminder(5, "user-1", ReminderUpdate(title="New"))
        assert exc.value.details["status"] == "SENT"


class TestClose:
    @pytest.mark.asyncio
    async def test_complete(self, make_reminder):
        reminder_store, calculation_store = _make_stores()
        reminder_store.close.return_value = make_reminder(
            id=5, status=ReminderStatus.COMPLETED
        )
        svc = _service(reminder_store, calculation_store)

        closed = await svc.complete_reminder(5, "user-1")

        assert closed.status == ReminderStatus.COMPLETED
        reminder_store.close.assert_awaited_once_with(5, "user-1", ReminderStatus.COMPLETED)
        reminder_store.get_for_owner.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_is_not_found(self):
        reminder_store, _ = _make_stores()
        reminder_store.close.return_value = None
        reminder_store.get_for_owner.return_value = None
        svc = _service(reminder_store)

        with pytest.raises(ReminderNotFoundError):
            await svc.complete_reminder(5, "user-1")

    @pytest.mark.asyncio
    async def test_terminal_is_invalid_state(self, make_reminder):
        reminder_store, _ = _make_stores()
        reminder_store.close.return_value = None
        reminder_store.get_for_owner.return_value = make_reminder(
            id=5, status=ReminderStatus.COMPLETED
        )
        svc = _service(reminder_store)

        with pytest.raises(InvalidStateError) as exc:
            await svc.cancel_reminder(5, "user-1")
        assert exc.value.details == {
            "reminder_id": 5,
            "status": "COMPLETED",
            "action": "cancel",
        }


class TestStatistics:
    @pytest.mark.asyncio
    async def test_by_type_zero_filled(self, make_reminder):
        reminder_store, _ = _make_stores()
        reminder_store.count_for_owner.side_effect = [12, 4]
        reminder_store.count_overdue.return_value = 1
        reminder_store.count_pending_by_type.return_value = {ReminderType.FOLLOW_UP: 4}
        reminder_store.list_upcoming.return_value = [make_reminder(id=1)]
        svc = _service(reminder_store, upcoming_window_days=7, upcoming_limit=5)

        stats = await svc.get_statistics("user-1")

        assert stats.total == 12
        assert stats.pending == 4
        assert stats.overdue == 1
        assert set(stats.by_type) == set(ReminderType)
        assert stats.by_type[ReminderType.FOLLOW_UP] == 4
        assert stats.by_type[ReminderType.GENERAL] == 0
        assert len(stats.upcoming) == 1
        reminder_store.list_upcoming.assert_awaited_once_with(
            "user-1", NOW, NOW + timedelta(days=7), 5
        )
