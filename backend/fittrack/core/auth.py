"""Password hashing (bcrypt) and access/refresh token handling (python-jose)."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from fittrack.config import settings

# bcrypt ignores everything past 72 bytes
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES], password_hash.encode("utf-8"))


def _signing_key() -> tuple[str, str]:
    """(key, algorithm): RS256 private key when a key pair is configured, else SECRET_KEY."""
    if settings.use_rs256:
        return settings.jwt_private_key.strip(), "RS256"
    return settings.secret_key, settings.jwt_algorithm


def _verification_key() -> tuple[str, list[str]]:
    if settings.use_rs256:
        return settings.jwt_public_key.strip(), ["RS256"]
    return settings.secret_key, [settings.jwt_algorithm]


def create_access_token(user_id: int, email: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    key, algorithm = _signing_key()
    token = jwt.encode({"sub": str(user_id), "email": email, "typ": "access", "exp": expire}, key, algorithm=algorithm)
    return token if isinstance(token, str) else token.decode("utf-8")


def decode_token(token: str) -> dict[str, Any]:
    """Verified claims of an access token. Raises JWTError when invalid, expired or not an access token."""
    key, algorithms = _verification_key()
    payload = jwt.decode(token, key, algorithms=algorithms)
    if payload.get("typ", "access") != "access":
        raise JWTError("Not an access token")
    return payload


def create_refresh_token() -> str:
    """Opaque refresh token; only its hash is stored."""
    return secrets.token_urlsafe(32)


def hash_refresh_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_share_token() -> str:
    """Random URL-safe token for public weekly report links."""
    return secrets.token_urlsafe(24)
