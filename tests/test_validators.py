"""Tests for URL and deployment payload validation."""

import pytest

from exceptions import InvalidFormatError, InvalidURLError
from utils.validators import DeploymentValidator, URLValidator


@pytest.fixture
def urls():
    return URLValidator(allowed_schemes={"http", "https"}, max_length=60)


@pytest.mark.parametrize(
    "url",
    ["https://example.com", "http://example.com:8080/health", "https://api.example.com/v1?x=1"],
)
def test_accepts_valid_urls(urls, url):
    assert urls.validate(url) == url


@pytest.mark.parametrize(
    "url, reason",
    [
        ("example.com", "no_scheme"),
        ("ftp://example.com", "invalid_scheme"),
        ("https://" + "a" * 60 + ".com", "too_long"),
        ("https://exa mple.com", "malformed"),
    ],
)
def test_rejects_invalid_urls(urls, url, reason):
    with pytest.raises(InvalidURLError) as exc_info:
        urls.validate(url, field="health_check_url")

    assert exc_info.value.details["reason"] == reason
    assert exc_info.value.user_message().startswith("Invalid health_check_url")
    assert not urls.is_valid_url(url)


def test_create_parses_last_deployed_at(urls):
    values = DeploymentValidator(urls).validate_create({
        "name": "api",
        "url": "https://api.example.com",
        "last_deployed_at": "2024-03-01T10:00:00Z",
        "status": "Deploying",
    })

    assert values["last_deployed_at"].isoformat() == "2024-03-01T10:00:00+00:00"
    assert values["status"] == "deploying"


def test_body_must_be_object(urls):
    with pytest.raises(InvalidFormatError):
        DeploymentValidator(urls).validate_create(["api"])


def test_update_returns_only_supplied_fields(urls):
    values = DeploymentValidator(urls).validate_update({
        "notes": "  hello  ",
        "metadata": {"a": 1},
    })

    assert values == {"notes": "hello", "meta": {"a": 1}}
