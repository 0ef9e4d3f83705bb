"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.storage import ICalculationStore, IReminderStore

__all__ = [
    "ICalculationStore",
    "IReminderStore",
]
