"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict so
routes can serialize it without knowing the concrete type.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "SWITCH_NOT_FOUND")
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


class ConflictError(AppError):
    """Conflict with existing resource or state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
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
# SWITCH ERRORS
# ===================

class SwitchNotFoundError(NotFoundError):
    """Switch record not found (or not owned by the caller)."""

    def __init__(self, switch_id: str):
        super().__init__(
            resource="Switch",
            identifier=switch_id,
            code="SWITCH_NOT_FOUND"
        )


class UnknownSwitchFieldError(ValidationError):
    """Field key is not part of the switch schema."""

    def __init__(self, field_key: str):
        super().__init__(
            code="UNKNOWN_SWITCH_FIELD",
            message=f"Unknown switch field: {field_key}",
            details={"field": field_key}
        )


# ===================
# CSV ERRORS
# ===================

class CSVParseError(ValidationError):
    """CSV content could not be tokenized into a header row."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="CSV_PARSE_ERROR",
            message=message,
            details=details
        )


# ===================
# IMPORT SESSION ERRORS
# ===================

class ImportSessionNotFoundError(NotFoundError):
    """Import session expired or never existed."""

    def __init__(self, session_id: str):
        super().__init__(
            resource="Import session",
            identifier=session_id,
            code="IMPORT_SESSION_NOT_FOUND"
        )


class ImportRowNotFoundError(NotFoundError):
    """Preview row not found in the import session."""

    def __init__(self, row_id: int):
        super().__init__(
            resource="Import row",
            identifier=str(row_id),
            code="IMPORT_ROW_NOT_FOUND"
        )


class InvalidImportTransitionError(ConflictError):
    """Pipeline event is not allowed in the current stage."""

    def __init__(self, current_stage: str, event: str):
        super().__init__(
            code="INVALID_IMPORT_TRANSITION",
            message=f"Cannot apply {event} while import is {current_stage}",
            details={
                "current_stage": current_stage,
                "event": event,
            }
        )


class ImportValidationBlockedError(ConflictError):
    """Rows with unverified manufacturers block the import."""

    def __init__(self, blocking_rows: list[int], manufacturers: list[str]):
        super().__init__(
            code="IMPORT_VALIDATION_BLOCKED",
            message=(
                f"{len(blocking_rows)} rows have unrecognized manufacturers. "
                "Correct them or accept them as new manufacturers."
            ),
            details={
                "blocking_count": len(blocking_rows),
                "blocking_rows": blocking_rows,
                "manufacturers": manufacturers,
            }
        )


# ===================
# MANUFACTURER ERRORS
# ===================

class ManufacturerLookupError(ExternalServiceError):
    """Verified manufacturer list could not be loaded."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="manufacturer_lookup",
            message=message,
            details=details
        )
