"""
Domain exceptions for the CRM reminder service.

Provides specific exception types for different error scenarios. The API
layer maps them to HTTP responses by type.
"""

from typing import Any


class CRMError(Exception):
    """Base exception for all CRM errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Lookup Exceptions
class NotFoundError(CRMError):
    """
    Referenced record does not exist or is not visible to the caller.

    The two cases are deliberately indistinguishable.
    """

    pass


class ReminderNotFoundError(NotFoundError):
    """Reminder not found for this owner."""

    def __init__(self, reminder_id: int):
        super().__init__(
            f"Reminder not found: {reminder_id}",
            code="REMINDER_NOT_FOUND",
            details={"reminder_id": reminder_id},
        )


class CalculationNotFoundError(NotFoundError):
    """Calculation not found for this owner."""

    def __init__(self, calculation_id: str):
        super().__init__(
            f"Calculation not found: {calculation_id}",
            code="CALCULATION_NOT_FOUND",
            details={"calculation_id": calculation_id},
        )


# Lifecycle Exceptions
class InvalidStateError(CRMError):
    """Requested transition is illegal from the current status."""

    def __init__(self, reminder_id: int, current: str, action: str):
        super().__init__(
            f"Cannot {action} reminder {reminder_id}: status is {current}",
            code="INVALID_STATE",
            details={"reminder_id": reminder_id, "status": current, "action": action},
        )


class DependencyFailureError(CRMError):
    """A collaborator lookup failed for reasons other than not-found."""

    def __init__(self, dependency: str, reason: str):
        super().__init__(
            f"Dependency '{dependency}' failed: {reason}",
            code="DEPENDENCY_FAILURE",
            details={"dependency": dependency, "reason": reason},
        )


# Storage Exceptions
class StorageError(CRMError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Validation Exceptions
class ValidationError(CRMError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Identity Exceptions
class AuthenticationError(CRMError):
    """No identity context on the request."""

    def __init__(self, reason: str = "Missing user identity"):
        super().__init__(reason, code="UNAUTHENTICATED")


class PermissionDeniedError(CRMError):
    """Caller lacks the role required for the action."""

    def __init__(self, action: str, required_role: str):
        super().__init__(
            f"Access denied for {action}: {required_role} role required",
            code="PERMISSION_DENIED",
            details={"action": action, "required_role": required_role},
        )


class ConfigurationError(CRMError):
    """Configuration error."""

    pass
