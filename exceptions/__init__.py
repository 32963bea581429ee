"""
Exceptions Package for Deployment Monitor

Provides the exception hierarchy used throughout the application.
Every exception carries an HTTP status and renders itself into the
structured ``{error, details}`` payload returned by the API.
"""

from exceptions.base import (
    DeploymentMonitorException,
    ConfigurationError,
    InitializationError,
    AuthenticationError
)

from exceptions.database import (
    DatabaseException,
    DatabaseConnectionError,
    DatabaseQueryError,
    DatabaseNotFoundError,
    DatabaseDuplicateError,
    DatabaseIntegrityError,
    HealthCheckPersistenceError
)

from exceptions.validation import (
    ValidationException,
    InvalidURLError,
    MissingFieldError,
    FieldTooLongError,
    InvalidFormatError
)

__all__ = [
    # Base exceptions
    "DeploymentMonitorException",
    "ConfigurationError",
    "InitializationError",
    "AuthenticationError",

    # Database exceptions
    "DatabaseException",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "DatabaseNotFoundError",
    "DatabaseDuplicateError",
    "DatabaseIntegrityError",
    "HealthCheckPersistenceError",

    # Validation exceptions
    "ValidationException",
    "InvalidURLError",
    "MissingFieldError",
    "FieldTooLongError",
    "InvalidFormatError"
]
