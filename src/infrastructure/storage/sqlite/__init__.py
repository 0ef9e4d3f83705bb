"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.calculation_store import SQLiteCalculationStore
from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from src.infrastructure.storage.sqlite.reminder_store import SQLiteReminderStore

# Singleton instances
_reminder_store: SQLiteReminderStore | None = None
_calculation_store: SQLiteCalculationStore | None = None


async def get_reminder_store() -> SQLiteReminderStore:
    """Get singleton reminder store instance."""
    global _reminder_store
    if _reminder_store is None:
        _reminder_store = SQLiteReminderStore()
    return _reminder_store


async def get_calculation_store() -> SQLiteCalculationStore:
    """Get singleton calculation store instance."""
    global _calculation_store
    if _calculation_store is None:
        _calculation_store = SQLiteCalculationStore()
    return _calculation_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteCalculationStore",
    "SQLiteReminderStore",
    # Factory functions
    "get_calculation_store",
    "get_reminder_store",
]
