"""
Custom exception classes for the application.

Every error carries a machine-readable code, a human-readable message and
the HTTP status the API layer should answer with.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "IMPORT_MISSING_COLUMNS")
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
# IMPORT ERRORS
# ===================

class ImportParseError(ValidationError):
    """Import file could not be read (wrong format, no data rows)."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="IMPORT_PARSE_ERROR",
            message=message,
            details=details
        )


class MissingColumnsError(ValidationError):
    """Required columns could not be matched to any header."""

    def __init__(self, missing_fields: list[str], headers: Optional[list[str]] = None):
        self.missing_fields = list(missing_fields)
        super().__init__(
            code="IMPORT_MISSING_COLUMNS",
            message=f"Missing required columns: {', '.join(missing_fields)}",
            details={"missing": list(missing_fields), "headers": headers or []}
        )


class SynonymConflictError(AppError):
    """The same header spelling is registered for two fields."""

    def __init__(self, synonym: str, first_field: str, second_field: str):
        super().__init__(
            code="SYNONYM_CONFLICT",
            message=(
                f"Header synonym '{synonym}' is registered for both "
                f"'{first_field}' and '{second_field}'"
            ),
            status_code=500,
            details={
                "synonym": synonym,
                "fields": [first_field, second_field],
            }
        )


class UnknownImportJobError(NotFoundError):
    """No import job registered under this name."""

    def __init__(self, job_name: str):
        super().__init__(
            resource="Import job",
            identifier=job_name,
            code="IMPORT_JOB_NOT_FOUND"
        )


# ===================
# UPLOAD ERRORS
# ===================

class InvalidUploadTransitionError(ValidationError):
    """Upload task moved between states the lifecycle does not allow."""

    def __init__(self, role: str, current_status: str, new_status: str):
        super().__init__(
            code="INVALID_UPLOAD_TRANSITION",
            message=f"Cannot transition upload '{role}' from {current_status} to {new_status}",
            details={
                "role": role,
                "current_status": current_status,
                "new_status": new_status,
                "reason": "success and error are terminal"
            }
        )


class PhotoNotFoundError(NotFoundError):
    """Photo not found in storage."""

    def __init__(self, path: str):
        super().__init__(
            resource="Photo",
            identifier=path,
            code="PHOTO_NOT_FOUND"
        )


# ===================
# NOTIFICATION ERRORS
# ===================

class NotificationError(AppError):
    """WhatsApp delivery failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="NOTIFICATION_ERROR",
            message=message,
            status_code=502,
            details=details
        )
