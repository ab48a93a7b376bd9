"""User service — the credential store for the users table.

Learn: This is the only code that reads or writes password hashes.
Everything it returns is a public projection (UserSummary / UserProfile),
so a hash can't leak through an API response by accident.

Username uniqueness is enforced by the primary key, not by a pre-check:
two concurrent registrations race in the database, and the loser gets
IntegrityError → DuplicateKeyError.
"""

import structlog
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from messagely.auth.password import hash_password, verify_password
from messagely.db.models import User, utcnow
from messagely.errors import DuplicateKeyError, NotFoundError
from messagely.schemas.user import UserProfile, UserSummary

logger = structlog.get_logger()

# Public columns only. User.password is deliberately absent.
SUMMARY_COLUMNS = (User.username, User.first_name, User.last_name, User.phone)
PROFILE_COLUMNS = SUMMARY_COLUMNS + (User.join_at, User.last_login_at)


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str,
    ) -> UserProfile:
        """Create a user with a bcrypt-hashed password."""
        now = utcnow()
        stmt = (
            insert(User)
            .values(
                username=username,
                password=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                join_at=now,
                last_login_at=now,
            )
            .returning(*PROFILE_COLUMNS)
        )
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().one()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("user.register_duplicate", username=username)
            raise DuplicateKeyError(f"Username '{username}' is already taken")

        logger.info("user.registered", username=username)
        return UserProfile.model_validate(dict(row))

    async def authenticate(self, username: str, password: str) -> bool:
        """Check a password. Unknown usernames return False, not an error."""
        result = await self.db.execute(
            select(User.password).where(User.username == username)
        )
        password_hash = result.scalar_one_or_none()
        if password_hash is None:
            return False
        return verify_password(password, password_hash)

    async def touch_login(self, username: str) -> None:
        """Set last_login_at to now."""
        result = await self.db.execute(
            update(User)
            .where(User.username == username)
            .values(last_login_at=utcnow())
            .returning(User.username)
        )
        if result.scalar_one_or_none() is None:
            await self.db.rollback()
            raise NotFoundError(f"User '{username}' not found")
        await self.db.commit()

    async def list_all(self) -> list[UserSummary]:
        result = await self.db.execute(
            select(*SUMMARY_COLUMNS).order_by(User.join_at, User.username)
        )
        return [UserSummary.model_validate(dict(row)) for row in result.mappings()]

    async def get_profile(self, username: str) -> UserProfile:
        result = await self.db.execute(
            select(*PROFILE_COLUMNS).where(User.username == username)
        )
        row = result.mappings().first()
        if row is None:
            raise NotFoundError(f"User '{username}' not found")
        return UserProfile.model_validate(dict(row))
