"""
Validation Exception Classes for Deployment Monitor

Provides specialized exceptions for input validation errors
including missing fields, malformed URLs and unknown values.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional
from exceptions.base import DeploymentMonitorException


class ValidationException(DeploymentMonitorException):
    """
    Base Validation Exception

    Parent class for all validation-related exceptions.
    """

    default_error_code = 3000
    default_recoverable = True
    http_status = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize validation exception.

        Args:
            message: Error message
            field: The field that failed validation
            value: The invalid value (sanitized)
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if field:
            self.details["field"] = field

        if value is not None:
            self.details["value"] = self._sanitize_value(value)

    @staticmethod
    def _sanitize_value(value: Any) -> str:
        """
        Sanitize value for logging.

        Args:
            value: The value to sanitize

        Returns:
            Sanitized string representation
        """
        str_value = str(value)

        if len(str_value) > 100:
            str_value = str_value[:100] + "..."

        return str_value


class InvalidURLError(ValidationException):
    """
    Invalid URL Error

    Raised when a deployment or health check URL is invalid or malformed.
    """

    default_error_code = 3001

    def __init__(
        self,
        message: str = "Invalid URL format",
        url: Optional[str] = None,
        field: str = "url",
        reason: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize invalid URL error.

        Args:
            message: Error message
            url: The invalid URL
            field: Which URL field was rejected
            reason: Specific reason for invalidity
            **kwargs: Additional arguments
        """
        super().__init__(message, field=field, value=url, **kwargs)

        if reason:
            self.details["reason"] = reason

    def user_message(self) -> str:
        """Get user-friendly error message."""
        reasons = {
            "no_scheme": "URL must start with http:// or https://",
            "invalid_scheme": "URL scheme is not allowed",
            "too_long": "URL is too long",
            "malformed": "URL is malformed",
        }

        field = self.details.get("field", "url")
        reason = self.details.get("reason", "")
        return f"Invalid {field}: " + reasons.get(
            reason, "please provide a valid URL (e.g., https://example.com)"
        )


class MissingFieldError(ValidationException):
    """
    Missing Field Error

    Raised when a required field is missing or blank.
    """

    default_error_code = 3004

    def __init__(
        self,
        message: str = "Required field is missing",
        field: str = "unknown",
        **kwargs: Any
    ) -> None:
        """
        Initialize missing field error.

        Args:
            message: Error message
            field: The missing field name
            **kwargs: Additional arguments
        """
        super().__init__(message, field=field, **kwargs)

    def user_message(self) -> str:
        """Get user-friendly error message."""
        field = self.details.get("field", "field")
        return f"The {field} field is required"


class FieldTooLongError(ValidationException):
    """
    Field Too Long Error

    Raised when a field exceeds maximum length.
    """

    default_error_code = 3005

    def __init__(
        self,
        message: str = "Field exceeds maximum length",
        field: Optional[str] = None,
        max_length: Optional[int] = None,
        actual_length: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize field too long error.

        Args:
            message: Error message
            field: The field name
            max_length: Maximum allowed length
            actual_length: Actual length of the value
            **kwargs: Additional arguments
        """
        super().__init__(message, field=field, **kwargs)

        if max_length is not None:
            self.details["max_length"] = max_length

        if actual_length is not None:
            self.details["actual_length"] = actual_length

    def user_message(self) -> str:
        """Get user-friendly error message."""
        field = self.details.get("field", "field")
        max_len = self.details.get("max_length", "unknown")
        return f"The {field} field must be {max_len} characters or less"


class InvalidFormatError(ValidationException):
    """
    Invalid Format Error

    Raised when data doesn't match expected format, such as an unknown
    platform value or a request body that is not a JSON object.
    """

    default_error_code = 3006

    def __init__(
        self,
        message: str = "Invalid format",
        field: Optional[str] = None,
        expected_format: Optional[str] = None,
        allowed: Optional[Iterable[str]] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize invalid format error.

        Args:
            message: Error message
            field: The field name
            expected_format: Description of expected format
            allowed: Allowed values, when the field is an enumeration
            **kwargs: Additional arguments
        """
        super().__init__(message, field=field, **kwargs)

        if expected_format:
            self.details["expected_format"] = expected_format

        if allowed is not None:
            self.details["allowed"] = sorted(allowed)

    def user_message(self) -> str:
        """Get user-friendly error message."""
        return self.message
