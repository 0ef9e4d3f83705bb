"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    SQLiteCalculationStore,
    SQLiteReminderStore,
    close_pool,
    get_calculation_store,
    get_connection,
    get_pool,
    get_reminder_store,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteCalculationStore",
    "SQLiteReminderStore",
    "get_calculation_store",
    "get_reminder_store",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
