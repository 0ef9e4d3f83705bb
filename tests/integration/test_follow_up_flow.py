"""
Integration tests for the follow-up flow.

Runs the reminder engine and the due-sweep against a real migrated SQLite
database.
"""

import asyncio
from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from src.application.services import reset_services
from src.application.use_cases import ProcessScheduledRemindersUseCase
from src.config.settings import ReminderSettings
from src.core.entities import (
    CalculationStatus,
    PageRequest,
    ReminderFilters,
    ReminderStatus,
    ReminderType,
    utcnow,
)
from src.core.exceptions import DatabaseError
from src.core.services import ReminderOptions, ReminderService


@pytest.fixture
def clock():
    state = {"now": utcnow()}

    def _now():
        return state["now"]

    _now.state = state
    return _now


@pytest.fixture
def service(reminder_store, calculation_store, clock) -> ReminderService:
    return ReminderService(
        reminder_store,
        calculation_store,
        settings=ReminderSettings(),
        clock=clock,
    )


@pytest.fixture
def sweep(reminder_store, clock) -> ProcessScheduledRemindersUseCase:
    return ProcessScheduledRemindersUseCase(
        reminder_store=reminder_store,
        batch_size=10,
        clock=clock,
    )


class TestFollowUpFlow:
    async def test_series_fires_until_cap(
        self, service, sweep, calculation_store, sample_calculation, clock
    ):
        await calculation_store.create(sample_calculation)
        start = clock()

        first = await service.schedule_follow_up_reminders(
            "calc-1", "user-1", ReminderOptions(frequency=3, max_reminders=2)
        )

        calc = await calculation_store.get_for_owner("calc-1", "user-1")
        assert calc.status == CalculationStatus.PROPOSAL_SENT
        assert calc.reminder_active is True
        assert calc.next_reminder_date == first.scheduled_date

        # Not yet due
        assert (await sweep.execute()).processed == 0

        clock.state["now"] = start + timedelta(days=3, minutes=1)
        result = await sweep.execute()
        assert (result.sent, result.next_occurrences_created) == (1, 1)

        calc = await calculation_store.get_for_owner("calc-1", "user-1")
        assert calc.next_reminder_date == first.scheduled_date + timedelta(days=3)

        clock.state["now"] = start + timedelta(days=6, minutes=1)
        result = await sweep.execute()
        assert (result.sent, result.next_occurrences_created) == (1, 0)

        calc = await calculation_store.get_for_owner("calc-1", "user-1")
        assert calc.reminder_active is False
        assert calc.next_reminder_date is None

        page = await service.get_reminders_for_user("user-1")
        assert [r.status for r in page.reminders] == [ReminderStatus.SENT, ReminderStatus.SENT]
        assert [r.occurrence for r in page.reminders] == [1, 2]

    async def test_cancel_stops_series(
        self, service, sweep, calculation_store, sample_calculation, clock
    ):
        await calculation_store.create(sample_calculation)
        start = clock()
        first = await service.schedule_follow_up_reminders(
            "calc-1", "user-1", ReminderOptions(frequency=1, max_reminders=10)
        )

        clock.state["now"] = start + timedelta(days=1, minutes=1)
        await sweep.execute()

        # Cancelling the sent occurrence cancels the pending successor
        cancelled = await service.cancel_reminder(first.id, "user-1")
        assert cancelled.status == ReminderStatus.CANCELLED

        pending = await service.get_reminders_for_user(
            "user-1", ReminderFilters(status=ReminderStatus.PENDING)
        )
        assert pending.total_count == 0

        clock.state["now"] = start + timedelta(days=30)
        assert (await sweep.execute()).processed == 0

        calc = await calculation_store.get_for_owner("calc-1", "user-1")
        assert calc.reminder_active is False

    async def test_failed_calculation_write_leaves_no_series(
        self,
        service,
        reminder_store,
        calculation_store,
        sample_calculation,
        block_calculation_updates,
    ):
        await calculation_store.create(sample_calculation)
        await block_calculation_updates()

        with pytest.raises(DatabaseError):
            await service.schedule_follow_up_reminders("calc-1", "user-1")

        assert await reminder_store.count_for_owner("user-1", ReminderFilters()) == 0
        calc = await calculation_store.get_for_owner("calc-1", "user-1")
        assert calc.status == CalculationStatus.DRAFT
        assert calc.reminder_active is False

    async def test_close_racing_sweep_ends_follow_up(
        self, service, sweep, calculation_store, sample_calculation, clock
    ):
        await calculation_store.create(sample_calculation)
        start = clock()
        first = await service.schedule_follow_up_reminders(
            "calc-1", "user-1", ReminderOptions(frequency=1, max_reminders=5)
        )
        clock.state["now"] = start + timedelta(days=1, minutes=1)

        result, completed = await asyncio.gather(
            sweep.execute(), service.complete_reminder(first.id, "user-1")
        )

        assert completed.status == ReminderStatus.COMPLETED
        assert result.failed == 0
        assert result.sent + result.skipped == result.processed
        pending = await service.get_reminders_for_user(
            "user-1", ReminderFilters(status=ReminderStatus.PENDING)
        )
        assert pending.total_count == 0
        calc = await calculation_store.get_for_owner("calc-1", "user-1")
        assert calc.reminder_active is False
        assert calc.next_reminder_date is None

    async def test_pagination_past_end(self, service, clock):
        for i in range(20):
            await service.create_reminder(
                "user-1", f"client-{i}", "CLIENT", "CALL_CLIENT", f"Call {i}"
            )

        page = await service.get_reminders_for_user("user-1", page=PageRequest(page=2, limit=20))

        assert page.reminders == []
        assert page.total_count == 20
        assert page.total_pages == 1
        assert page.has_next_page is False
        assert page.has_prev_page is True

    async def test_statistics(self, service, clock):
        now = clock()
        await service.create_reminder(
            "user-1", "o-1", "ORDER", "DELIVERY_REMINDER", "Truck",
            scheduled_date=now + timedelta(days=2),
        )
        await service.create_reminder(
            "user-1", "o-2", "ORDER", "CHECK_PAYMENT", "Invoice",
            scheduled_date=now + timedelta(days=20),
        )
        done = await service.create_reminder("user-1", "c-1", "CLIENT", "GENERAL", "Done")
        await service.complete_reminder(done.id, "user-1")

        # Advance the clock so nothing is in the past relative to creation
        clock.state["now"] = now + timedelta(days=1)
        stats = await service.get_statistics("user-1")

        assert stats.total == 3
        assert stats.pending == 2
        assert stats.overdue == 0
        assert stats.by_type[ReminderType.DELIVERY_REMINDER] == 1
        assert stats.by_type[ReminderType.CHECK_PAYMENT] == 1
        assert stats.by_type[ReminderType.GENERAL] == 0
        assert [r.title for r in stats.upcoming] == ["Truck"]

    async def test_isolation_between_owners(self, service):
        mine = await service.create_reminder("user-1", "c-1", "CLIENT", "GENERAL", "Mine")

        other = await service.get_reminders_for_user("user-2")
        assert other.total_count == 0

        from src.core.exceptions import ReminderNotFoundError

        with pytest.raises(ReminderNotFoundError):
            await service.complete_reminder(mine.id, "user-2")


class TestHttpFlow:
    """End-to-end through the API with the real service wiring."""

    @pytest.fixture
    async def client(self, migrated_db):
        from src.api.main import app

        reset_services()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
        reset_services()

    async def test_create_complete_and_conflict(self, client: AsyncClient):
        headers = {"X-User-Id": "user-1"}
        created = await client.post(
            "/api/reminders",
            headers=headers,
            json={
                "related_id": "client-1",
                "related_type": "CLIENT",
                "reminder_type": "CALL_CLIENT",
                "title": "Call about the shipment",
                "scheduled_date": (utcnow() + timedelta(days=1)).isoformat(),
            },
        )
        assert created.status_code == 201
        reminder_id = created.json()["id"]

        completed = await client.put(f"/api/reminders/{reminder_id}/complete", headers=headers)
        assert completed.status_code == 200
        assert completed.json()["status"] == "COMPLETED"

        again = await client.delete(f"/api/reminders/{reminder_id}", headers=headers)
        assert again.status_code == 409

        foreign = await client.get(
            f"/api/reminders/{reminder_id}", headers={"X-User-Id": "user-2"}
        )
        assert foreign.status_code == 404

    async def test_admin_sweep(self, client: AsyncClient):
        response = await client.post(
            "/api/reminders/process-due",
            headers={"X-User-Id": "ops", "X-User-Role": "admin"},
        )

        assert response.status_code == 200
        assert response.json()["processed"] == 0

    async def test_database_failure_is_500_envelope(
        self,
        client: AsyncClient,
        calculation_store,
        sample_calculation,
        block_calculation_updates,
    ):
        await calculation_store.create(sample_calculation)
        await block_calculation_updates()

        response = await client.post(
            "/api/reminders/follow-up",
            headers={"X-User-Id": "user-1"},
            json={"calculation_id": "calc-1"},
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "DATABASE_ERROR"
        assert body["hint"]

        listed = await client.get("/api/reminders", headers={"X-User-Id": "user-1"})
        assert listed.json()["pagination"]["total_count"] == 0
