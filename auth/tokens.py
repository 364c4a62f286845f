"""
auth/tokens.py -- Session token issuing and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the subject hash ("sub"), the directory display name ("name"), the
       issue time and the expiry. Verification reports (None, False) on any
       failure -- bad signature, expiry, malformed input, missing claims --
       and never raises, so the login flow can treat a broken stored token
       exactly like an expired one.

  Subject hash: SHA-256 over the UTF-8 identifier, lowercase hex. The digest
       algorithm is fixed so the same institutional ID always lands on the
       same session record. Changing it orphans every existing record.

  Key: TokenIssuer is built once in the API lifespan from Settings and stored
       on app.state. Rotating SECRET_KEY invalidates all outstanding tokens;
       the next login for each subject refreshes its stored token.

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("sub", "exp")

DEFAULT_TTL = timedelta(hours=24)


def hash_identifier(identifier: str) -> str:
    """Return the irreversible subject hash for an institutional identifier."""
    return hashlib.sha256(identifier.encode("utf-8")).hexdigest()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Creates and validates signed session tokens.

    Usage:
        issuer = TokenIssuer(settings.secret_key, timedelta(hours=24))
        token = issuer.issue(hash_identifier("z1111111"), "Alice")
        claims, valid = issuer.verify(token)

    clock is injectable so tests can mint tokens that are already expired.
    Verification always checks expiry against the real current time.
    """

    def __init__(
        self,
        secret_key: str,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._secret_key = secret_key
        self.ttl = ttl
        self._clock = clock

    def issue(self, subject: str, display_name: str, ttl: timedelta | None = None) -> str:
        """Encode a signed token for subject with expiry = now + ttl."""
        issued_at = self._clock()
        expire = issued_at + (ttl if ttl is not None else self.ttl)
        payload = {
            "sub": subject,
            "name": display_name,
            "iat": int(issued_at.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str | None) -> tuple[dict | None, bool]:
        """Decode and check a token. Returns (claims, True) or (None, False)."""
        if not token or not isinstance(token, str):
            return None, False
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except (JWTError, TypeError, ValueError):
            # jose lets malformed numeric claims (e.g. a list in "exp") escape as TypeError.
            return None, False
        if any(claim not in claims for claim in _REQUIRED_CLAIMS):
            return None, False
        return claims, True
