"""
Session Authentication for Deployment Monitor

Issues and verifies the signed session token carried in the session
cookie. A token is ``<payload>.<signature>`` where the payload is
base64url-encoded JSON ``{"email", "created_at"}`` and the signature is
an HMAC-SHA256 of the payload under the configured secret key.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from config.settings import SecuritySettings
from exceptions import AuthenticationError
from utils.helpers import TimeHelper


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


class SessionManager:
    """
    Credential check and session token signing.

    Attributes:
        cookie_name: Name of the session cookie
        max_age: Session lifetime in seconds
    """

    def __init__(self, settings: SecuritySettings) -> None:
        self.settings = settings
        self.cookie_name = settings.session_cookie_name
        self.max_age = settings.session_max_age
        self._key = settings.secret_key.get_secret_value().encode("utf-8")

    @property
    def enabled(self) -> bool:
        return self.settings.auth_enabled

    def check_credentials(self, email: str, password: str) -> bool:
        """
        Compare credentials against the configured operator account.

        Returns:
            True when both email and password match
        """
        expected_email = self.settings.admin_email
        expected_password = self.settings.admin_password

        if not expected_email or expected_password is None:
            return False

        email_ok = hmac.compare_digest(
            email.strip().lower().encode("utf-8"),
            expected_email.strip().lower().encode("utf-8"),
        )
        password_ok = hmac.compare_digest(
            password.encode("utf-8"),
            expected_password.get_secret_value().encode("utf-8"),
        )
        return email_ok and password_ok

    def _sign(self, payload: str) -> str:
        digest = hmac.new(self._key, payload.encode("utf-8"), hashlib.sha256).digest()
        return _b64encode(digest)

    def issue(self, email: str, now: Optional[datetime] = None) -> str:
        """
        Create a signed session token.

        Args:
            email: Authenticated operator email
            now: Issue time (defaults to the current UTC time)

        Returns:
            Token suitable for the session cookie
        """
        created_at = now or TimeHelper.get_utc_now()
        body = json.dumps(
            {"email": email, "created_at": created_at.isoformat()},
            separators=(",", ":"),
        )
        payload = _b64encode(body.encode("utf-8"))
        return f"{payload}.{self._sign(payload)}"

    def verify(self, token: Optional[str], now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Validate a session token.

        Args:
            token: Cookie value, or None when the cookie is absent
            now: Reference time for the expiry check

        Returns:
            The decoded session ``{"email", "created_at"}``

        Raises:
            AuthenticationError: If the token is missing, tampered with,
                malformed or expired
        """
        if not token:
            raise AuthenticationError(reason="missing")

        payload, _, signature = token.partition(".")
        if not payload or not signature:
            raise AuthenticationError("Invalid session", reason="invalid")

        try:
            valid = hmac.compare_digest(
                signature.encode("utf-8"), self._sign(payload).encode("utf-8")
            )
        except UnicodeEncodeError as e:
            raise AuthenticationError("Invalid session", reason="invalid", cause=e)
        if not valid:
            raise AuthenticationError("Invalid session", reason="invalid")

        try:
            session = json.loads(_b64decode(payload))
            created_at = TimeHelper.ensure_utc(datetime.fromisoformat(session["created_at"]))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError("Invalid session", reason="invalid", cause=e)

        current = now or TimeHelper.get_utc_now()
        if current - created_at > timedelta(seconds=self.max_age):
            raise AuthenticationError("Session expired", reason="expired")

        return session
