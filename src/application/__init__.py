"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection
"""

from src.application.dto.requests import (
    CreateReminderRequest,
    FollowUpReminderRequest,
    UpdateReminderRequest,
)
from src.application.dto.responses import (
    ErrorResponse,
    HealthResponse,
    ReminderListResponse,
    ReminderResponse,
    ReminderStatsResponse,
    SweepResultResponse,
)
from src.application.services import (
    get_reminder_service,
    get_sweep_use_case,
    reset_services,
)
from src.application.use_cases import ProcessScheduledRemindersUseCase, SweepResult

__all__ = [
    # Request DTOs
    "CreateReminderRequest",
    "FollowUpReminderRequest",
    "UpdateReminderRequest",
    # Response DTOs
    "ErrorResponse",
    "HealthResponse",
    "ReminderListResponse",
    "ReminderResponse",
    "ReminderStatsResponse",
    "SweepResultResponse",
    # Use Cases
    "ProcessScheduledRemindersUseCase",
    "SweepResult",
    # Service factories
    "get_reminder_service",
    "get_sweep_use_case",
    "reset_services",
]
