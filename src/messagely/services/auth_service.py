"""Auth service — turns credentials or a token into an identity.

Learn: Two ways in, one way out:
  credentials → UserService.authenticate → touch_login → JWT
  bearer JWT  → verify signature + username claim → CurrentIdentity

Login failures never say whether the username exists; unknown user and
wrong password raise the same InvalidCredentialsError.
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from messagely.auth.jwt import create_token, verify_token
from messagely.errors import InvalidCredentialsError, InvalidTokenError
from messagely.services.user_service import UserService

logger = structlog.get_logger()


class CurrentIdentity:
    """The authenticated user making the request."""

    def __init__(self, username: str):
        self.username = username

    def __repr__(self) -> str:
        return f"CurrentIdentity(username={self.username!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, CurrentIdentity) and other.username == self.username

    def __hash__(self) -> int:
        return hash(self.username)


class AuthService:
    """Login, registration, and token authentication."""

    def __init__(self, db: AsyncSession):
        self.users = UserService(db)

    async def login(self, username: str, password: str) -> str:
        """Check credentials, record the login, and issue a token."""
        if not await self.users.authenticate(username, password):
            logger.info("auth.login_failed", username=username)
            raise InvalidCredentialsError()

        await self.users.touch_login(username)
        logger.info("auth.login", username=username)
        return create_token(username)

    async def register(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str,
    ) -> str:
        """Create the account, log it in, and issue a token."""
        user = await self.users.register(
            username=username,
            password=password,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
        )
        await self.users.touch_login(user.username)
        return create_token(user.username)

    @staticmethod
    def authenticate(token: Optional[str]) -> CurrentIdentity:
        """Recover the identity from a bearer token. Pure computation, no I/O."""
        if not token:
            raise InvalidTokenError("Missing token")
        payload = verify_token(token)
        return CurrentIdentity(username=payload["username"])
