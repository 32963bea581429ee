"""Tests for session token signing and credential checks."""

from datetime import timedelta

import pytest
from pydantic import SecretStr

from api.auth import SessionManager
from config.settings import SecuritySettings
from exceptions import AuthenticationError


@pytest.fixture
def sessions():
    return SessionManager(
        SecuritySettings(
            auth_enabled=True,
            secret_key=SecretStr("s3cret"),
            admin_email="Ops@Example.com",
            admin_password=SecretStr("hunter2"),
            session_max_age=3600,
        )
    )


def test_credentials(sessions):
    assert sessions.check_credentials("ops@example.com", "hunter2")
    assert not sessions.check_credentials("ops@example.com", "wrong")
    assert not sessions.check_credentials("intruder@example.com", "hunter2")


def test_issued_token_verifies(sessions, clock):
    token = sessions.issue("ops@example.com", now=clock.now)

    session = sessions.verify(token, now=clock.now + timedelta(minutes=5))

    assert session["email"] == "ops@example.com"


def test_expired_token_rejected(sessions, clock):
    token = sessions.issue("ops@example.com", now=clock.now)

    with pytest.raises(AuthenticationError) as exc_info:
        sessions.verify(token, now=clock.now + timedelta(hours=2))

    assert exc_info.value.details["reason"] == "expired"


def test_tampered_token_rejected(sessions, clock):
    token = sessions.issue("ops@example.com", now=clock.now)
    _, signature = token.split(".")
    forged = SessionManager(
        SecuritySettings(secret_key=SecretStr("other"))
    ).issue("admin@example.com", now=clock.now)

    with pytest.raises(AuthenticationError):
        sessions.verify(f"{forged.split('.')[0]}.{signature}", now=clock.now)
    with pytest.raises(AuthenticationError):
        sessions.verify(forged, now=clock.now)


@pytest.mark.parametrize(
    "token", [None, "", "garbage", "abc.def", "éx.éy", "abc.\udcff"]
)
def test_malformed_token_rejected(sessions, token):
    with pytest.raises(AuthenticationError):
        sessions.verify(token)
