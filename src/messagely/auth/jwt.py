"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
The token carries a single "username" claim, signed with the server secret.
Tokens do not expire unless MESSAGELY_TOKEN_EXPIRE_MINUTES is set, in which
case an "exp" claim is added and PyJWT enforces it on decode.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from messagely.config import settings
from messagely.errors import InvalidTokenError


class TokenError(InvalidTokenError):
    """Raised when token verification fails."""


def create_token(
    username: str,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a signed JWT asserting the given username."""
    now = datetime.now(timezone.utc)
    payload = {
        "username": username,
        "iat": now,
    }
    expires_minutes = expires_minutes or settings.token_expire_minutes
    if expires_minutes:
        payload["exp"] = now + timedelta(minutes=expires_minutes)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure, including a missing username claim.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    username = payload.get("username")
    if not isinstance(username, str) or not username:
        raise TokenError("Invalid token: missing username claim")
    return payload
