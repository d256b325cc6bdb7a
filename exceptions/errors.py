"""
Custom exception classes for the application.

Error codes are stable strings; clients switch on them.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "EXERCISE_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# EXERCISE CATALOG ERRORS
# ===================

class ExerciseNotFoundError(NotFoundError):
    """Exercise id not present in the catalog."""

    def __init__(self, exercise_id: str):
        super().__init__(
            resource="Exercise",
            identifier=exercise_id,
            code="EXERCISE_NOT_FOUND"
        )


# ===================
# MAPPING ERRORS
# ===================

class UserMappingNotFoundError(NotFoundError):
    """No user mapping for the given query."""

    def __init__(self, query: str):
        super().__init__(
            resource="User mapping",
            identifier=query,
            code="USER_MAPPING_NOT_FOUND"
        )


class MappingStorageError(DatabaseError):
    """Reading or writing persisted mapping state failed."""

    def __init__(self, operation: str, key: str, message: str):
        super().__init__(
            operation=operation,
            message=message,
            details={"key": key}
        )


class InvalidMappingImportError(ValidationError):
    """Import document is not a valid mapping export."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_MAPPING_IMPORT",
            message=message,
            details=details
        )
