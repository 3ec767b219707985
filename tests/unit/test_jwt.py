"""Access token signing and verification."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from edurewards.auth import jwt as jwt_module
from edurewards.auth.jwt import create_access_token, verify_token
from edurewards.config import get_settings


def _sign(payload: dict) -> str:
    return jwt.encode(payload, jwt_module._load_private_key(), algorithm="RS256")


class TestAccessTokens:
    def test_round_trip_claims(self):
        token = create_access_token("uid-1", name="Asha", email="a@example.com", role="admin")
        claims = verify_token(token)

        assert claims["sub"] == "uid-1"
        assert claims["name"] == "Asha"
        assert claims["email"] == "a@example.com"
        assert claims["role"] == "admin"
        assert claims["iss"] == get_settings().jwt_issuer

    def test_optional_claims_omitted(self):
        claims = verify_token(create_access_token("uid-1"))
        assert "name" not in claims
        assert "role" not in claims

    def test_expired_token_rejected(self):
        now = datetime.now(timezone.utc)
        token = _sign(
            {"sub": "uid-1", "iat": now - timedelta(hours=2), "exp": now - timedelta(hours=1), "iss": "edurewards"}
        )
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_issuer_rejected(self):
        now = datetime.now(timezone.utc)
        token = _sign({"sub": "uid-1", "exp": now + timedelta(minutes=5), "iss": "someone-else"})
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_missing_subject_rejected(self):
        now = datetime.now(timezone.utc)
        token = _sign({"exp": now + timedelta(minutes=5), "iss": "edurewards"})
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_non_access_type_rejected(self):
        now = datetime.now(timezone.utc)
        token = _sign({"sub": "uid-1", "exp": now + timedelta(minutes=5), "iss": "edurewards", "type": "refresh"})
        with pytest.raises(jwt.InvalidTokenError, match="access token"):
            verify_token(token)

    def test_tampered_token_rejected(self):
        token = create_access_token("uid-1")
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}.{signature[::-1]}"
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(tampered)
