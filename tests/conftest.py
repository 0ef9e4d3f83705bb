"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable, Generator
from datetime import timedelta
from pathlib import Path

import pytest

from src.config import Settings, get_settings, reset_settings
from src.core.entities import (
    Calculation,
    RelatedType,
    Reminder,
    ReminderStatus,
    ReminderType,
    utcnow,
)


@pytest.fixture
def test_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Settings, None, None]:
    """Settings pointing at a temporary data directory, scheduler off."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("STORAGE_POOL_SIZE", "3")
    monkeypatch.setenv("STORAGE_BUSY_TIMEOUT", "5000")
    monkeypatch.setenv("SCHEDULER_ENABLED", "false")
    reset_settings()
    yield get_settings()
    reset_settings()


@pytest.fixture
async def migrated_db(test_settings: Settings) -> AsyncGenerator[Path, None]:
    """Temporary database with all migrations applied; pool closed afterwards."""
    from src.infrastructure.storage.sqlite import close_pool
    from src.infrastructure.storage.sqlite.migrations import initialize_database

    await initialize_database(create_backup_before=False)
    yield test_settings.storage.db_path
    await close_pool()


@pytest.fixture
def make_reminder() -> Callable[..., Reminder]:
    """Factory for reminder entities with sensible defaults."""

    def _make(**overrides) -> Reminder:
        fields = {
            "user_id": "user-1",
            "related_id": "calc-1",
            "related_type": RelatedType.CALCULATION,
            "reminder_type": ReminderType.FOLLOW_UP,
            "title": "Follow up with Acme",
            "description": "Ask about the proposal",
            "scheduled_date": utcnow() + timedelta(days=1),
            "status": ReminderStatus.PENDING,
        }
        fields.update(overrides)
        return Reminder(**fields)

    return _make


@pytest.fixture
def sample_calculation() -> Calculation:
    """Calculation owned by user-1 for client Acme Trading."""
    return Calculation(
        id="calc-1",
        user_id="user-1",
        name="Container 40ft electronics",
        client_id="client-1",
        client_name="Acme Trading",
    )


@pytest.fixture
def reminder_store(migrated_db: Path):
    """Reminder store over a freshly migrated database."""
    from src.infrastructure.storage.sqlite import SQLiteReminderStore

    return SQLiteReminderStore()


@pytest.fixture
def calculation_store(migrated_db: Path):
    """Calculation store over a freshly migrated database."""
    from src.infrastructure.storage.sqlite import SQLiteCalculationStore

    return SQLiteCalculationStore()


@pytest.fixture
def block_calculation_updates(migrated_db: Path) -> Callable:
    """Install a trigger that aborts every UPDATE of the calculations table."""
    from src.infrastructure.storage.sqlite import get_connection

    async def _block() -> None:
        async with get_connection() as conn:
            await conn.execute(
                """
                CREATE TRIGGER calculations_read_only BEFORE UPDATE ON calculations
                BEGIN
                    SELECT RAISE(ABORT, 'calculations are read-only');
                END
                """
            )

    return _block
