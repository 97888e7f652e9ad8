"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current identity from the Authorization header.
require_admin layers a role check on top for management routes.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from smartdine.auth.jwt import TokenError, verify_token

ADMIN_ROLE = "admin"


class CurrentIdentity:
    """Represents the authenticated user making the request.

    Learn: Built from a verified token (HTTP or WebSocket). All downstream
    code uses user_id for ownership and role for admin-only actions.
    """

    def __init__(self, user_id: str, role: str = "customer"):
        self.user_id = user_id
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @classmethod
    def from_token(cls, token: str) -> "CurrentIdentity":
        """Verify a raw JWT and build an identity. Raises TokenError."""
        payload = verify_token(token)
        return cls(user_id=str(payload["sub"]), role=payload.get("role", "customer"))


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional — returns None if no auth).

    Learn: The "soft" dependency, for endpoints like recommendations that
    personalize when a user is known but work anonymously too.
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    try:
        return CurrentIdentity.from_token(authorization[7:])
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no auth)."""
    if not identity:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


async def require_admin(
    identity: CurrentIdentity = Depends(get_current_user),
) -> CurrentIdentity:
    """Extract current identity and insist on the admin role (403 otherwise)."""
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return identity
