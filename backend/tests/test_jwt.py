"""Unit tests for token helpers: HS256/RS256 access tokens, expiry, token type, refresh/share tokens."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from jose import JWTError, jwt

from fittrack.config import settings
from fittrack.core.auth import (
    create_access_token,
    create_refresh_token,
    create_share_token,
    decode_token,
    hash_password,
    hash_refresh_token,
    verify_password,
)


def test_access_token_roundtrip_hs256():
    token = create_access_token(user_id=42, email="u@example.com")
    payload = decode_token(token)
    assert payload["sub"] == "42"
    assert payload["email"] == "u@example.com"
    assert payload["typ"] == "access"


def test_tampered_token_rejected():
    token = create_access_token(user_id=1, email="a@b.com")
    bad = token[:-1] + ("x" if token[-1] != "x" else "y")
    with pytest.raises(JWTError):
        decode_token(bad)


def test_expired_token_rejected():
    token = create_access_token(user_id=1, email="a@b.com", expires_delta=timedelta(minutes=-1))
    with pytest.raises(JWTError):
        decode_token(token)


def test_wrong_secret_rejected():
    token = create_access_token(user_id=1, email="a@b.com")
    with patch.object(settings, "secret_key", "other-secret"):
        with pytest.raises(JWTError):
            decode_token(token)


def test_non_access_token_rejected():
    token = jwt.encode(
        {"sub": "1", "typ": "refresh", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(JWTError):
        decode_token(token)


def test_access_token_roundtrip_rs256():
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    with patch.object(settings, "jwt_private_key", private_pem), patch.object(settings, "jwt_public_key", public_pem):
        token = create_access_token(user_id=99, email="rs@test.com")
        assert jwt.get_unverified_header(token)["alg"] == "RS256"
        assert decode_token(token)["sub"] == "99"


def test_password_hash_verifies():
    hashed = hash_password("s3cret")
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_refresh_and_share_tokens_are_random():
    assert create_refresh_token() != create_refresh_token()
    assert create_share_token() != create_share_token()
    token = create_refresh_token()
    assert hash_refresh_token(token) == hash_refresh_token(token)
    assert len(hash_refresh_token(token)) == 64
