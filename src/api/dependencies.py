"""
Dependency injection container for FastAPI.

Provides the identity context and service instances to route handlers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header

from src.application.services import get_reminder_service, get_sweep_use_case
from src.application.use_cases import ProcessScheduledRemindersUseCase
from src.config import bind_log_context
from src.core.exceptions import AuthenticationError, PermissionDeniedError
from src.core.services import ReminderService

ADMIN_ROLE = "ADMIN"
DEFAULT_ROLE = "MANAGER"


@dataclass(frozen=True)
class CurrentUser:
    """Identity context supplied with each request."""

    user_id: str
    role: str = DEFAULT_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def get_current_user(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_user_role: str | None = Header(default=None, alias="X-User-Role"),
) -> CurrentUser:
    """Resolve the acting user from identity headers."""
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError()

    user = CurrentUser(
        user_id=x_user_id.strip(),
        role=(x_user_role or DEFAULT_ROLE).strip().upper(),
    )
    bind_log_context(user_id=user.user_id)
    return user


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Allow only administrators."""
    if not user.is_admin:
        raise PermissionDeniedError("process due reminders", ADMIN_ROLE)
    return user


# Service dependencies
async def get_reminders() -> ReminderService:
    """Get reminder engine."""
    return await get_reminder_service()


def get_process_due_use_case() -> ProcessScheduledRemindersUseCase:
    """Get due-sweep use case."""
    return get_sweep_use_case()
