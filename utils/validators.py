"""
============================================================================
DEPLOYMENT MONITOR - VALIDATORS UTILITY
============================================================================
Validation of URLs and of deployment create/update payloads.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Set
from urllib.parse import urlparse

import validators as external_validators

from database.models import DeploymentStatus, Platform
from exceptions import (
    FieldTooLongError,
    InvalidFormatError,
    InvalidURLError,
    MissingFieldError
)
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger("Validators")


# ============================================================================
# URL VALIDATORS
# ============================================================================

class URLValidator:
    """
    URL validation against an allowed scheme set and a length limit.
    """

    def __init__(
        self,
        allowed_schemes: Iterable[str] = ("http", "https"),
        max_length: int = 2048
    ):
        self.allowed_schemes: Set[str] = {s.lower() for s in allowed_schemes}
        self.max_length = max_length

    def validate(self, url: Any, field: str = "url") -> str:
        """
        Validate a URL and return it stripped of surrounding whitespace.

        Args:
            url: Candidate URL
            field: Field name reported in errors

        Returns:
            The accepted URL

        Raises:
            InvalidURLError: If the URL is not acceptable
        """
        if not isinstance(url, str):
            raise InvalidURLError(f"{field} must be a string", url=url, field=field, reason="malformed")

        url = url.strip()

        if len(url) > self.max_length:
            raise InvalidURLError(
                f"{field} exceeds {self.max_length} characters",
                url=url, field=field, reason="too_long"
            )

        scheme = urlparse(url).scheme.lower()
        if not scheme:
            raise InvalidURLError(f"{field} has no scheme", url=url, field=field, reason="no_scheme")

        if scheme not in self.allowed_schemes:
            raise InvalidURLError(
                f"{field} scheme {scheme!r} is not allowed",
                url=url, field=field, reason="invalid_scheme"
            )

        # simple_host admits internal names such as http://api:8000
        if external_validators.url(url, simple_host=True) is not True:
            raise InvalidURLError(f"{field} is malformed", url=url, field=field, reason="malformed")

        return url

    def is_valid_url(self, url: Any) -> bool:
        """
        Check if URL is valid.

        Args:
            url: URL to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            self.validate(url)
            return True
        except InvalidURLError as e:
            logger.debug(f"URL rejected: {e.message}")
            return False


# ============================================================================
# DEPLOYMENT PAYLOAD VALIDATOR
# ============================================================================

class DeploymentValidator:
    """
    Validates and normalizes deployment payloads coming from the API.

    ``validate_create`` returns the full column set with defaults applied;
    ``validate_update`` returns only the fields that were supplied.
    """

    MAX_NAME_LENGTH = 255
    MAX_BRANCH_LENGTH = 255
    MAX_ENVIRONMENT_LENGTH = 64
    MAX_NOTES_LENGTH = 10000

    # Fields the client may send on create
    CREATE_FIELDS = frozenset({
        "name", "display_name", "url", "health_check_url", "platform",
        "repository_url", "branch", "environment", "notes", "metadata",
        "status", "last_deployed_at",
    })

    # Written only by the health check path or by the database
    READ_ONLY_FIELDS = frozenset({
        "id", "health_status", "last_health_check_at", "created_at", "updated_at",
    })

    def __init__(self, url_validator: URLValidator):
        self.urls = url_validator

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate_create(self, payload: Any) -> Dict[str, Any]:
        """
        Validate a create payload.

        Args:
            payload: Decoded JSON body

        Returns:
            Column values for a new Deployment

        Raises:
            ValidationException: On any invalid or missing field
        """
        payload = self._require_object(payload)
        self._reject_unknown(payload, self.CREATE_FIELDS)

        name = self._name(payload.get("name"))
        url = self._required_url(payload.get("url"), "url")

        values: Dict[str, Any] = {
            "name": name,
            "display_name": self._text(
                payload.get("display_name"), "display_name", self.MAX_NAME_LENGTH
            ) or name,
            "url": url,
            "health_check_url": self._optional_url(payload.get("health_check_url"), "health_check_url"),
            "platform": self._platform(payload.get("platform")) or Platform.RENDER.value,
            "repository_url": self._optional_url(payload.get("repository_url"), "repository_url"),
            "branch": self._text(payload.get("branch"), "branch", self.MAX_BRANCH_LENGTH) or "main",
            "environment": self._text(
                payload.get("environment"), "environment", self.MAX_ENVIRONMENT_LENGTH
            ) or "production",
            "notes": self._text(payload.get("notes"), "notes", self.MAX_NOTES_LENGTH),
            "meta": self._metadata(payload.get("metadata")),
            "status": self._status(payload.get("status")) or DeploymentStatus.DEPLOYED.value,
            "last_deployed_at": self._timestamp(payload.get("last_deployed_at"), "last_deployed_at"),
        }
        return values

    def validate_update(self, payload: Any) -> Dict[str, Any]:
        """
        Validate a partial update payload.

        Args:
            payload: Decoded JSON body

        Returns:
            Column values to change (may be empty)

        Raises:
            ValidationException: On any invalid, unknown or read-only field
        """
        payload = self._require_object(payload)

        read_only = sorted(set(payload) & self.READ_ONLY_FIELDS)
        if read_only:
            raise InvalidFormatError(
                f"Field(s) cannot be changed: {', '.join(read_only)}",
                field=read_only[0],
                expected_format="writable field",
                allowed=self.CREATE_FIELDS
            )
        self._reject_unknown(payload, self.CREATE_FIELDS)

        values: Dict[str, Any] = {}
        for key, raw in payload.items():
            if key == "name":
                values["name"] = self._name(raw)
            elif key == "display_name":
                values["display_name"] = self._required_text(raw, key, self.MAX_NAME_LENGTH)
            elif key == "url":
                values["url"] = self._required_url(raw, key)
            elif key in ("health_check_url", "repository_url"):
                values[key] = self._optional_url(raw, key)
            elif key == "platform":
                values["platform"] = self._platform(raw) or Platform.RENDER.value
            elif key == "branch":
                values["branch"] = self._required_text(raw, key, self.MAX_BRANCH_LENGTH)
            elif key == "environment":
                values["environment"] = self._required_text(raw, key, self.MAX_ENVIRONMENT_LENGTH)
            elif key == "notes":
                values["notes"] = self._text(raw, key, self.MAX_NOTES_LENGTH)
            elif key == "metadata":
                values["meta"] = self._metadata(raw)
            elif key == "status":
                values["status"] = self._status(raw) or DeploymentStatus.DEPLOYED.value
            elif key == "last_deployed_at":
                values["last_deployed_at"] = self._timestamp(raw, key)

        return values

    # ------------------------------------------------------------------
    # Field checks
    # ------------------------------------------------------------------

    @staticmethod
    def _require_object(payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise InvalidFormatError(
                "Request body must be a JSON object",
                field="body",
                expected_format="object"
            )
        return payload

    @staticmethod
    def _reject_unknown(payload: Dict[str, Any], allowed: Iterable[str]) -> None:
        unknown = sorted(set(payload) - set(allowed))
        if unknown:
            raise InvalidFormatError(
                f"Unknown field(s): {', '.join(unknown)}",
                field=unknown[0],
                allowed=allowed
            )

    def _name(self, raw: Any) -> str:
        return self._required_text(raw, "name", self.MAX_NAME_LENGTH)

    def _required_text(self, raw: Any, field: str, max_length: int) -> str:
        text = self._text(raw, field, max_length)
        if not text:
            raise MissingFieldError(f"{field} is required", field=field)
        return text

    @staticmethod
    def _text(raw: Any, field: str, max_length: int) -> Optional[str]:
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise InvalidFormatError(
                f"{field} must be a string", field=field, expected_format="string"
            )

        text = raw.strip()
        if len(text) > max_length:
            raise FieldTooLongError(
                f"{field} is too long",
                field=field,
                max_length=max_length,
                actual_length=len(text)
            )
        return text or None

    def _required_url(self, raw: Any, field: str) -> str:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            raise MissingFieldError(f"{field} is required", field=field)
        return self.urls.validate(raw, field=field)

    def _optional_url(self, raw: Any, field: str) -> Optional[str]:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        return self.urls.validate(raw, field=field)

    @staticmethod
    def _platform(raw: Any) -> Optional[str]:
        if raw is None or raw == "":
            return None
        try:
            return Platform(str(raw).lower()).value
        except ValueError:
            raise InvalidFormatError(
                f"Unknown platform: {raw}",
                field="platform",
                allowed=[p.value for p in Platform]
            )

    @staticmethod
    def _status(raw: Any) -> Optional[str]:
        if raw is None or raw == "":
            return None
        try:
            return DeploymentStatus(str(raw).lower()).value
        except ValueError:
            raise InvalidFormatError(
                f"Unknown status: {raw}",
                field="status",
                allowed=[s.value for s in DeploymentStatus]
            )

    @staticmethod
    def _metadata(raw: Any) -> Dict[str, Any]:
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise InvalidFormatError(
                "metadata must be a JSON object",
                field="metadata",
                expected_format="object"
            )
        return dict(raw)

    @staticmethod
    def _timestamp(raw: Any, field: str) -> Optional[datetime]:
        if raw is None or raw == "":
            return None
        if not isinstance(raw, str):
            raise InvalidFormatError(
                f"{field} must be an ISO-8601 string",
                field=field,
                expected_format="ISO-8601"
            )
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidFormatError(
                f"{field} is not a valid ISO-8601 timestamp",
                field=field,
                expected_format="ISO-8601",
                cause=e
            )
        return TimeHelper.ensure_utc(parsed)


# ============================================================================
# END OF VALIDATORS MODULE
# ============================================================================
