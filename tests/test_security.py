"""
Token and password helpers.
"""
from __future__ import annotations

import pytest
from jose import JWTError

from issuetracker.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    hash_token,
    validate_password_strength,
    verify_password,
)


class TestTokens:
    def test_access_token_claims(self) -> None:
        claims = decode_access_token(create_access_token("u-1", "a@example.com", "admin"))
        assert claims["sub"] == "u-1"
        assert claims["email"] == "a@example.com"
        assert claims["role"] == "admin"
        assert claims["type"] == "access"

    def test_tokens_are_unique(self) -> None:
        assert create_refresh_token("u-1") != create_refresh_token("u-1")

    def test_refresh_token_is_not_an_access_token(self) -> None:
        with pytest.raises(JWTError):
            decode_access_token(create_refresh_token("u-1"))

    def test_access_token_is_not_a_refresh_token(self) -> None:
        with pytest.raises(JWTError):
            decode_refresh_token(create_access_token("u-1", "a@example.com", "viewer"))

    def test_stored_digest_is_stable(self) -> None:
        token = create_refresh_token("u-1")
        assert hash_token(token) == hash_token(token)
        assert hash_token(token) != token


class TestPasswords:
    def test_hash_roundtrip(self) -> None:
        hashed = hash_password("Secret123")
        assert verify_password("Secret123", hashed)
        assert not verify_password("secret123", hashed)

    @pytest.mark.parametrize(
        ("password", "message"),
        [
            ("Ab1", "at least 8 characters"),
            ("lowercase1", "uppercase letter"),
            ("NoDigitsHere", "one digit"),
        ],
    )
    def test_weak_passwords(self, password: str, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            validate_password_strength(password)

    def test_strong_password_passes_through(self) -> None:
        assert validate_password_strength("Str0ngPass") == "Str0ngPass"
