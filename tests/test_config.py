"""Unit tests for core/config.py -- Settings validation.

Covers:
- production mode refuses to start without SECRET_KEY
- dev mode generates a key
- short keys are rejected
- session and directory defaults
"""

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_production_requires_secret_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """With DEBUG off and no SECRET_KEY, Settings must refuse to load."""
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.setenv("DEBUG", "false")
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None)


def test_debug_generates_secret_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """With DEBUG on and no SECRET_KEY, a key of at least 32 characters must be generated."""
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.setenv("DEBUG", "true")
    settings = Settings(_env_file=None)
    assert len(settings.secret_key) >= 32


def test_short_secret_key_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    """A SECRET_KEY shorter than 32 characters must be rejected."""
    monkeypatch.setenv("SECRET_KEY", "too-short")
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(_env_file=None)


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Token ttl, role, name attribute, domain and login rate limit must have their documented defaults."""
    monkeypatch.setenv("SECRET_KEY", "x" * 32)
    settings = Settings(_env_file=None)
    assert settings.token_ttl_seconds == 24 * 60 * 60
    assert settings.default_role == "user"
    assert settings.ldap_name_attribute == "givenName"
    assert settings.ldap_domain == "ad.unsw.edu.au"
    assert settings.login_rate_limit == "10/minute"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables must override the defaults."""
    monkeypatch.setenv("SECRET_KEY", "x" * 32)
    monkeypatch.setenv("TOKEN_TTL_SECONDS", "3600")
    monkeypatch.setenv("LDAP_SERVER_URI", "ldaps://dc.example.edu")
    settings = Settings(_env_file=None)
    assert settings.token_ttl_seconds == 3600
    assert settings.ldap_server_uri == "ldaps://dc.example.edu"
