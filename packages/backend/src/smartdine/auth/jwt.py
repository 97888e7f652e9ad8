"""JWT token creation and verification.

Learn: The token carries the user id in `sub` and the user's role
("customer" or "admin") in `role`. Routes scope data by the former and
gate admin actions on the latter; the WebSocket join handler checks both.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from smartdine.config import settings


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def create_access_token(
    user_id: str,
    role: str = "customer",
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a JWT access token.

    Used by the identity provider and by tests; this service only verifies.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "exp": now + timedelta(
            minutes=expires_minutes or settings.access_token_expire_minutes
        ),
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise TokenError("Invalid token: not an access token")
    return payload
