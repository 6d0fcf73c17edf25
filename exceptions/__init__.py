"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,
    DatabaseError,

    # Imports
    ImportParseError,
    MissingColumnsError,
    SynonymConflictError,
    UnknownImportJobError,

    # Uploads
    InvalidUploadTransitionError,
    PhotoNotFoundError,

    # Notifications
    NotificationError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",
    "DatabaseError",

    # Imports
    "ImportParseError",
    "MissingColumnsError",
    "SynonymConflictError",
    "UnknownImportJobError",

    # Uploads
    "InvalidUploadTransitionError",
    "PhotoNotFoundError",

    # Notifications
    "NotificationError",
]
