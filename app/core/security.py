"""Password hashing, JWT issue/verify, and password reset token helpers."""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import bcrypt
import jwt

from app.core.config import settings
from app.core.errors import UnauthorizedError

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Raw reset tokens are 32 random bytes, hex encoded (64 chars).
RESET_TOKEN_BYTES = 32

# Claims every access token must carry; roles are never among them.
REQUIRED_CLAIMS = ("sub", "email", "exp", "iat")


@dataclass(frozen=True)
class TokenClaims:
    """Identity proven by a verified access token."""

    user_id: UUID
    email: str


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(user_id: UUID | str, email: str) -> str:
    """Create a JWT access token carrying only sub (user id), email and time claims."""
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "exp": expire,
        "iat": now,
        "nbf": now,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> TokenClaims:
    """
    Verify signature and expiry and return the identity claims.
    Raises UnauthorizedError on any invalid, expired or malformed token.
    Does not touch the database.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except jwt.PyJWTError as e:
        raise UnauthorizedError("Invalid or expired token") from e
    email = payload.get("email")
    if not isinstance(email, str) or not email:
        raise UnauthorizedError("Invalid token payload")
    try:
        user_id = UUID(str(payload["sub"]))
    except (TypeError, ValueError) as e:
        raise UnauthorizedError("Invalid token payload") from e
    return TokenClaims(user_id=user_id, email=email)


def generate_reset_token() -> tuple[str, str]:
    """Return (raw_token, hashed_token). Only the hash is stored; the raw value is emailed."""
    raw = secrets.token_hex(RESET_TOKEN_BYTES)
    return raw, hash_reset_token(raw)


def hash_reset_token(raw_token: str) -> str:
    """SHA-256 hex digest of a raw reset token."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def reset_token_expiry(now: datetime | None = None) -> datetime:
    """Expiry timestamp for a reset token issued at now (default: current UTC time)."""
    issued = now or datetime.now(UTC)
    return issued + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
