"""Password hashing, one-time tokens and signed session tokens."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt
from passlib.context import CryptContext

from fakturace.core.config import settings

SESSION_ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed or unknown hash format stored for the user.
        return False


def generate_token() -> str:
    """Random hex token for email verification and password reset links."""
    return secrets.token_hex(32)


def create_session_token(user_id: UUID | str, role: str, now: datetime | None = None) -> str:
    """Sign a session token for ``user_id``.

    The role is resolved once here, at login, and travels inside the token;
    ``require_admin`` checks the claim rather than the stored role.
    """
    issued = now or datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": issued,
        "exp": issued + timedelta(days=settings.SESSION_DURATION_DAYS),
    }
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str) -> dict[str, Any]:
    """Decode a session token.

    Raises:
        jwt.ExpiredSignatureError: The session is older than its lifetime.
        jwt.InvalidTokenError: The token is malformed or wrongly signed.
    """
    payload: dict[str, Any] = jwt.decode(
        token, settings.SESSION_SECRET, algorithms=[SESSION_ALGORITHM]
    )
    return payload
