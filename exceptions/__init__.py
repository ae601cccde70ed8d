"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,
    DatabaseError,

    # Switches
    SwitchNotFoundError,
    UnknownSwitchFieldError,

    # CSV
    CSVParseError,

    # Import sessions
    ImportSessionNotFoundError,
    ImportRowNotFoundError,
    InvalidImportTransitionError,
    ImportValidationBlockedError,

    # Manufacturers
    ManufacturerLookupError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",
    "DatabaseError",

    # Switches
    "SwitchNotFoundError",
    "UnknownSwitchFieldError",

    # CSV
    "CSVParseError",

    # Import sessions
    "ImportSessionNotFoundError",
    "ImportRowNotFoundError",
    "InvalidImportTransitionError",
    "ImportValidationBlockedError",

    # Manufacturers
    "ManufacturerLookupError",
]
