"""
Service factory functions for dependency injection.

This module wires the SQLite stores to the core reminder engine and the
due-sweep use case. API dependencies, the scheduler and manage.py import
from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from src.application.use_cases.process_scheduled_reminders import (
    ProcessScheduledRemindersUseCase,
)
from src.config import get_settings
from src.core.services import ReminderService

if TYPE_CHECKING:
    from src.core.interfaces import ICalculationStore, IReminderStore


# Singleton service instances
_reminder_service: ReminderService | None = None


async def get_reminder_service(
    reminder_store: "IReminderStore | None" = None,
    calculation_store: "ICalculationStore | None" = None,
) -> ReminderService:
    """
    Get or create ReminderService instance.

    Async because store creation is async.

    Args:
        reminder_store: Optional reminder store override
        calculation_store: Optional calculation store override

    Returns:
        Configured ReminderService
    """
    global _reminder_service

    overridden = reminder_store is not None or calculation_store is not None
    if _reminder_service is not None and not overridden:
        return _reminder_service

    # Lazy import infrastructure
    from src.infrastructure.storage.sqlite import (
        get_calculation_store,
        get_reminder_store,
    )

    service = ReminderService(
        reminder_store=reminder_store or await get_reminder_store(),
        calculation_store=calculation_store or await get_calculation_store(),
        settings=get_settings().reminders,
    )

    if not overridden:
        _reminder_service = service

    return service


def get_sweep_use_case() -> ProcessScheduledRemindersUseCase:
    """Create the due-sweep use case; stores resolve lazily on execute."""
    return ProcessScheduledRemindersUseCase()


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _reminder_service

    _reminder_service = None


__all__ = [
    # Factory functions
    "get_reminder_service",
    "get_sweep_use_case",
    # Reset
    "reset_services",
]
