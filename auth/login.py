"""
auth/login.py -- Login orchestration: directory bind -> token -> session record.

States:
  Authenticating -> Authenticated -> {SessionAbsent, SessionPresentValid,
  SessionPresentExpired} -> Done

  1. Bind against the directory. A rejected bind ends the login with
     AuthenticationError before any session store access.
  2. Read the display name on the same directory connection.
  3. Issue a fresh token for the subject hash.
  4. Reconcile the session record:
       absent           -> insert with the fresh token and the default role
       present, valid   -> leave it alone
       present, invalid -> overwrite its token with the fresh token
  5. Return the fresh token in every branch.

The fresh token is returned even when the stored one is still valid, so a
client can hold a token that differs from the stored one. That mirrors how the
service has always behaved; the stored token only changes when it stops
verifying.

Side effects per call: the directory is contacted exactly twice (bind,
attribute search) on one connection, and the session store sees at most one
insert or one update (plus one fallback update when a concurrent first login
wins the insert).

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.directory import DirectoryClient
from auth.models import Identity, LoginOutcome, LoginResult, SessionRecord
from auth.store import SessionStore
from auth.tokens import TokenIssuer, hash_identifier
from core.errors import AuthenticationError, ValidationError

logger = logging.getLogger("contentapi.auth")


class LoginService:
    """Turns an (identifier, secret) pair into a session token.

    Collaborators are injected so the API lifespan owns their lifetimes and
    tests can substitute a fake directory.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        issuer: TokenIssuer,
        sessions: SessionStore,
        name_attribute: str = "givenName",
        default_role: str = "user",
    ) -> None:
        self.directory = directory
        self.issuer = issuer
        self.sessions = sessions
        self.name_attribute = name_attribute
        self.default_role = default_role

    def authenticate(self, identifier: str, secret: str) -> Identity:
        """Verify credentials and fetch the display name on one directory connection."""
        with self.directory.connect() as conn:
            if not conn.verify(identifier, secret):
                raise AuthenticationError("Invalid zID or password.")
            display_name = conn.lookup_attribute(identifier, self.name_attribute)
        return Identity(identifier=identifier, display_name=display_name or "")

    def login(self, identifier: str, secret: str) -> LoginResult:
        identifier = (identifier or "").strip()
        if not identifier or not secret:
            raise ValidationError("zid and password are required.")

        identity = self.authenticate(identifier, secret)
        subject = hash_identifier(identity.identifier)
        token = self.issuer.issue(subject, identity.display_name)

        outcome = self._reconcile(subject, token)
        logger.info("Login for subject %s... (%s)", subject[:12], outcome.value)
        return LoginResult(token=token, subject=subject, outcome=outcome)

    def _reconcile(self, subject: str, token: str) -> LoginOutcome:
        record = self.sessions.get(subject)
        if record is None:
            try:
                self.sessions.insert(SessionRecord(subject=subject, token=token, role=self.default_role))
            except IntegrityError:
                # A concurrent first login inserted the record between get() and insert().
                self.sessions.update_token(subject, token)
                return LoginOutcome.refreshed
            return LoginOutcome.created

        if self._stored_token_valid(record, subject):
            return LoginOutcome.unchanged

        self.sessions.update_token(subject, token)
        return LoginOutcome.refreshed

    def _stored_token_valid(self, record: SessionRecord, subject: str) -> bool:
        claims, valid = self.issuer.verify(record.token)
        return valid and claims is not None and claims.get("sub") == subject
