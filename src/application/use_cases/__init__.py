"""Application use cases."""

from src.application.use_cases.process_scheduled_reminders import (
    ProcessScheduledRemindersUseCase,
    SweepResult,
)

__all__ = [
    "ProcessScheduledRemindersUseCase",
    "SweepResult",
]
