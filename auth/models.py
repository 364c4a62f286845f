"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in content/models.py -- dataclasses own domain shape; stores and the login
service do the work.

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass
class SessionRecord:
    """The persisted association between a subject and its latest token.

    subject is the SHA-256 hex digest of the institutional identifier (see
    auth.tokens.hash_identifier). The raw identifier is never stored, so the
    users table cannot be joined back to directory accounts without it.

    id is None before the record is written to the database.
    """

    subject: str
    token: str
    role: str = "user"
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class Identity:
    """Attributes fetched from the directory for one login.

    Only carried into the token claims, never persisted.
    """

    identifier: str
    display_name: str


class LoginOutcome(str, Enum):
    """What the login flow did to the subject's session record."""

    created = "created"
    refreshed = "refreshed"
    unchanged = "unchanged"


@dataclass
class LoginResult:
    token: str
    subject: str
    outcome: LoginOutcome
