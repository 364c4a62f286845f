"""Unit tests for auth/tokens.py -- TokenIssuer and hash_identifier.

Covers:
- issue() then verify() is valid immediately and carries sub/name claims
- tokens past their ttl stop verifying
- wrong key, tampered payload, malformed strings and missing claims are invalid
- verify() never raises, even on a correctly signed token with junk claims
- hash_identifier() is SHA-256 hex and deterministic
"""

from __future__ import annotations

import hashlib
from datetime import timedelta
from typing import TYPE_CHECKING

from jose import jwt

from auth.tokens import DEFAULT_TTL, TokenIssuer, hash_identifier

if TYPE_CHECKING:
    from conftest import FakeClock

_SUBJECT = hash_identifier("z1111111")


class TestHashIdentifier:
    """hash_identifier() is the only form in which a zID is persisted."""

    def test_sha256_hex_digest(self) -> None:
        """The subject hash must be the SHA-256 hex digest of the UTF-8 identifier."""
        assert hash_identifier("z1111111") == hashlib.sha256(b"z1111111").hexdigest()

    def test_deterministic_and_distinct(self) -> None:
        """The same zID must hash identically; different zIDs must not collide."""
        assert hash_identifier("z1111111") == hash_identifier("z1111111")
        assert hash_identifier("z1111111") != hash_identifier("z2222222")
        assert len(hash_identifier("z1111111")) == 64


class TestIssueVerify:
    """issue() and verify() agree on claims, expiry and signature."""

    def test_round_trip_valid(self, issuer: TokenIssuer) -> None:
        """A freshly issued token must verify and carry the sub and name claims."""
        token = issuer.issue(_SUBJECT, "Alice")
        claims, valid = issuer.verify(token)
        assert valid is True
        assert claims["sub"] == _SUBJECT
        assert claims["name"] == "Alice"

    def test_expiry_is_issue_time_plus_ttl(self, issuer: TokenIssuer, clock: FakeClock) -> None:
        """exp - iat must equal the configured ttl and iat must come from the clock."""
        claims, _ = issuer.verify(issuer.issue(_SUBJECT, "Alice"))
        assert claims["exp"] - claims["iat"] == int(timedelta(hours=24).total_seconds())
        assert claims["iat"] == int(clock.now.timestamp())

    def test_default_ttl_is_24_hours(self, secret_key: str) -> None:
        """A TokenIssuer built without a ttl must default to 24 hours."""
        assert TokenIssuer(secret_key).ttl == DEFAULT_TTL == timedelta(hours=24)

    def test_invalid_after_ttl_elapsed(self, issuer: TokenIssuer, clock: FakeClock) -> None:
        """A token issued 25 hours ago with a 24 hour ttl has expired."""
        clock.advance(hours=-25)
        token = issuer.issue(_SUBJECT, "Alice")
        assert issuer.verify(token) == (None, False)

    def test_per_call_ttl_override(self, issuer: TokenIssuer) -> None:
        """A ttl passed to issue() must override the issuer default."""
        token = issuer.issue(_SUBJECT, "Alice", ttl=timedelta(seconds=-1))
        _, valid = issuer.verify(token)
        assert valid is False


class TestRejectedTokens:
    """verify() returns (None, False) for anything it cannot trust, and never raises."""

    def test_wrong_key_invalid(self, issuer: TokenIssuer) -> None:
        """A token signed with a different key must not verify."""
        other = TokenIssuer("another-secret-key-also-32-characters-long!")
        token = other.issue(_SUBJECT, "Alice")
        assert issuer.verify(token) == (None, False)

    def test_tampered_token_invalid(self, issuer: TokenIssuer) -> None:
        """Swapping the payload under an existing signature must not verify."""
        token = issuer.issue(_SUBJECT, "Alice")
        header, _payload, signature = token.split(".")
        forged = jwt.encode({"sub": "attacker", "exp": 9999999999}, "guess", algorithm="HS256").split(".")[1]
        assert issuer.verify(f"{header}.{forged}.{signature}") == (None, False)

    def test_missing_claims_invalid(self, issuer: TokenIssuer, secret_key: str) -> None:
        """A correctly signed token without sub and exp must not verify."""
        token = jwt.encode({"name": "Alice"}, secret_key, algorithm="HS256")
        assert issuer.verify(token) == (None, False)

    def test_non_numeric_exp_invalid(self, issuer: TokenIssuer, secret_key: str) -> None:
        """A correctly signed token whose exp is not a number must not verify or raise."""
        token = jwt.encode({"sub": _SUBJECT, "exp": [1]}, secret_key, algorithm="HS256")
        assert issuer.verify(token) == (None, False)

    def test_non_numeric_iat_invalid(self, issuer: TokenIssuer, secret_key: str) -> None:
        """A correctly signed token whose iat is a string must not verify or raise."""
        token = jwt.encode({"sub": _SUBJECT, "exp": 9999999999, "iat": "yesterday"}, secret_key, algorithm="HS256")
        assert issuer.verify(token) == (None, False)

    def test_malformed_input_never_raises(self, issuer: TokenIssuer) -> None:
        """Empty, None and structurally broken strings must all be rejected quietly."""
        for bad in ("", "not-a-token", "a.b.c", None, "....."):
            assert issuer.verify(bad) == (None, False)
