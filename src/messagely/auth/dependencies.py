"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current identity from the request's
Authorization: Bearer <token> header.
"""

from typing import Optional

from fastapi import Depends, Header

from messagely.errors import UnauthenticatedError
from messagely.services.auth_service import AuthService, CurrentIdentity


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional — returns None if no auth).

    Learn: This is the "soft" auth dependency. A present but invalid
    token still fails with InvalidTokenError; only a missing header
    yields None.
    """
    if not authorization:
        return None

    # Auth schemes are case-insensitive (RFC 7235).
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer":
        return AuthService.authenticate(token.strip())

    return None


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no auth).

    Learn: This is the "hard" auth dependency. Used for endpoints
    that require authentication.
    """
    if not identity:
        raise UnauthenticatedError()
    return identity
