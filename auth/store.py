"""
auth/store.py -- SQLAlchemy Core persistence layer for session records.

Pattern: Repository + Data Mapper (same as content/store.py).
SessionStore is the repository; _row_to_session is the mapper.
The login service never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Only the subject hash is stored, never the institutional identifier.

Concurrency:
  UNIQUE(subject) guarantees one record per identifier. Two concurrent first
  logins for the same identifier both see "absent"; the second insert raises
  IntegrityError and the caller falls back to update_token(). Refreshes are a
  plain read-modify-write with no lock -- the last writer wins.

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import SessionRecord
from core.db import storage_errors

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("subject", String(64), nullable=False, unique=True),  # SHA-256 hex of the identifier
    Column("token", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default="user"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for SessionRecord entities.

    Usage:
        store = SessionStore(make_engine("sqlite:///content.db"))
        store.insert(SessionRecord(subject=hash_identifier("z1111111"), token=token))
        record = store.get(subject)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        with storage_errors("create users table"):
            _metadata.create_all(self.engine)

    def get(self, subject: str) -> SessionRecord | None:
        """Look up the session record for a subject hash. Returns None if absent."""
        with storage_errors("get session"), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.subject == subject)).fetchone()
        return _row_to_session(row) if row is not None else None

    def insert(self, record: SessionRecord) -> int:
        """Insert a new session record and return its database ID.

        Raises sqlalchemy.exc.IntegrityError if a record for the subject
        already exists. The login service catches that as the signal that a
        concurrent request created the record first.
        """
        now = _now_iso()
        with storage_errors("insert session"), self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    subject=record.subject,
                    token=record.token,
                    role=record.role,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_token(self, subject: str, token: str) -> bool:
        """Overwrite the stored token. Returns True if a record was updated."""
        with storage_errors("update session"), self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.subject == subject).values(token=token, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def count(self) -> int:
        with storage_errors("count sessions"), self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_session(row) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        subject=row.subject,
        token=row.token,
        role=row.role,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
