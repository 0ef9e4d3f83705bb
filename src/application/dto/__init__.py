"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from src.application.dto.requests import (
    CreateReminderRequest,
    FollowUpReminderRequest,
    UpdateReminderRequest,
)
from src.application.dto.responses import (
    ComponentHealthResponse,
    ErrorResponse,
    HealthResponse,
    PaginationResponse,
    ReminderListResponse,
    ReminderResponse,
    ReminderStatsResponse,
    SweepResultResponse,
)

__all__ = [
    # Requests
    "CreateReminderRequest",
    "FollowUpReminderRequest",
    "UpdateReminderRequest",
    # Responses
    "ComponentHealthResponse",
    "ErrorResponse",
    "HealthResponse",
    "PaginationResponse",
    "ReminderListResponse",
    "ReminderResponse",
    "ReminderStatsResponse",
    "SweepResultResponse",
]
