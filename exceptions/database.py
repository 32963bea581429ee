"""
Database Exception Classes for Deployment Monitor

Provides specialized exceptions for persistence errors including
connection issues, query errors, missing records and unique-key
conflicts.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional
from exceptions.base import DeploymentMonitorException


class DatabaseException(DeploymentMonitorException):
    """
    Base Database Exception

    Parent class for all persistence-related exceptions. Used directly
    when the store is unavailable or a write fails.
    """

    default_error_code = 2000
    default_recoverable = False
    http_status = 500

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        table: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize database exception.

        Args:
            message: Error message
            query: The SQL query that caused the error (sanitized)
            table: The database table involved
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if query:
            self.details["query"] = self._sanitize_query(query)

        if table:
            self.details["table"] = table

    @staticmethod
    def _sanitize_query(query: str) -> str:
        """
        Sanitize SQL query by removing literal values.

        Args:
            query: The original SQL query

        Returns:
            Sanitized query string
        """
        query = re.sub(r"'[^']*'", "'***'", query)
        query = re.sub(r"= \d+", "= ***", query)

        if len(query) > 500:
            query = query[:500] + "..."

        return query


class DatabaseConnectionError(DatabaseException):
    """
    Database Connection Error

    Raised when unable to establish or maintain database connection.
    """

    default_error_code = 2001

    def __init__(
        self,
        message: str = "Unable to connect to database",
        host: Optional[str] = None,
        port: Optional[int] = None,
        database: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize connection error.

        Args:
            message: Error message
            host: Database host
            port: Database port
            database: Database name
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if host:
            self.details["host"] = host

        if port:
            self.details["port"] = port

        if database:
            self.details["database"] = database

    def user_message(self) -> str:
        """Get user-friendly error message."""
        return "Unable to access the database. Please try again later."


class DatabaseQueryError(DatabaseException):
    """
    Database Query Error

    Raised when a database statement fails to execute.
    """

    default_error_code = 2002

    def __init__(
        self,
        message: str = "Database query failed",
        operation: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize query error.

        Args:
            message: Error message
            operation: The type of operation (SELECT, INSERT, etc.)
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if operation:
            self.details["operation"] = operation

    def user_message(self) -> str:
        """Get user-friendly error message."""
        return "An error occurred while processing your request."


class DatabaseNotFoundError(DatabaseException):
    """
    Database Not Found Error

    Raised when a requested record is not found in the database.
    """

    default_error_code = 2003
    default_recoverable = True
    http_status = 404

    def __init__(
        self,
        message: str = "Record not found",
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize not found error.

        Args:
            message: Error message
            entity_type: Type of entity not found (Deployment, etc.)
            entity_id: ID of the entity
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if entity_type:
            self.details["entity_type"] = entity_type

        if entity_id is not None:
            self.details["entity_id"] = str(entity_id)

    def user_message(self) -> str:
        """Get user-friendly error message."""
        entity = self.details.get("entity_type", "Record")
        return f"{entity} not found"


class DatabaseDuplicateError(DatabaseException):
    """
    Database Duplicate Error

    Raised when attempting to insert a record that violates a
    unique key, such as a second deployment with the same name.
    """

    default_error_code = 2004
    default_recoverable = True
    http_status = 409

    def __init__(
        self,
        message: str = "Record already exists",
        entity_type: Optional[str] = None,
        field: Optional[str] = None,
        value: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize duplicate error.

        Args:
            message: Error message
            entity_type: Type of entity
            field: Field that caused the duplicate
            value: The duplicate value (truncated)
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if entity_type:
            self.details["entity_type"] = entity_type

        if field:
            self.details["field"] = field

        if value:
            self.details["value"] = value[:50] if len(value) > 50 else value

    def user_message(self) -> str:
        """Get user-friendly error message."""
        entity = self.details.get("entity_type", "Record")
        field = self.details.get("field")
        if field:
            return f"{entity} with this {field} already exists"
        return f"{entity} already exists"


class DatabaseIntegrityError(DatabaseException):
    """
    Database Integrity Error

    Raised when a database integrity constraint is violated.
    """

    default_error_code = 2005

    def __init__(
        self,
        message: str = "Data integrity violation",
        constraint: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize integrity error.

        Args:
            message: Error message
            constraint: The constraint that was violated
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if constraint:
            self.details["constraint"] = constraint


class HealthCheckPersistenceError(DatabaseException):
    """
    Health Check Persistence Error

    Raised by the orchestrator when the probe completed but one or more
    of its follow-up writes (health status, log entry, daily stats)
    failed. Writes that succeeded are kept; the probe outcome travels
    with the error so the caller still sees what was observed.
    """

    default_error_code = 2010
    default_recoverable = True

    def __init__(
        self,
        message: str = "Health check completed but could not be fully recorded",
        failed_steps: Optional[List[str]] = None,
        result: Optional[Dict[str, Any]] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize health check persistence error.

        Args:
            message: Error message
            failed_steps: Names of the steps that failed, in order
            result: Serialized health check result
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        self.failed_steps = list(failed_steps or [])
        self.result = result
        self.details["failed_steps"] = self.failed_steps

        if result is not None:
            self.details["result"] = result
