"""API route modules."""

from src.api.routes.health import router as health_router
from src.api.routes.reminders import router as reminders_router

__all__ = [
    "health_router",
    "reminders_router",
]
