"""JWT helpers for admin-authenticated endpoints."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from app.config import settings
from app.core.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


def create_access_token(
    subject: str,
    *,
    role: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token carrying the user's role claim."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    to_encode: dict[str, Any] = {
        "sub": subject,
        "exp": expire,
        "type": "access",
    }
    if role:
        to_encode["role"] = role

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise InvalidTokenError(str(e)) from e

    token_type = payload.get("type")
    if token_type != expected_type:
        logger.warning("Token type mismatch", extra={"expected": expected_type, "got": token_type})
        raise InvalidTokenError(f"Expected {expected_type} token, got {token_type}")

    if payload.get("sub") is None:
        logger.warning("Token missing subject")
        raise InvalidTokenError("Token missing subject")

    return payload
