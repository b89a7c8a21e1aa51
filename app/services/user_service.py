"""
Identity and credential store.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationFailedError
from app.db.models import UserModel
from app.db.models.base import utcnow

logger = logging.getLogger(__name__)


class UserService:
    """Lookups and writes against the users table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        """Get user by ID."""
        return await self.session.get(UserModel, user_id)

    async def get_by_username(self, username: str) -> Optional[UserModel]:
        """Get user by username."""
        result = await self.session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        """Get user by email."""
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email)
        )
        return result.scalar_one_or_none()

    async def get_by_verification_token(self, token: str) -> Optional[UserModel]:
        """Get the user holding an outstanding verification token."""
        result = await self.session.execute(
            select(UserModel).where(UserModel.verification_token == token)
        )
        return result.scalar_one_or_none()

    async def require(self, user_id: int) -> UserModel:
        """Get user by ID or raise NotFoundError."""
        user = await self.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} does not exist", "User not found")
        return user

    async def ensure_available(self, username: str, email: str) -> None:
        """
        Raise a client error if the username or email is already taken.

        Raises:
            ValidationFailedError: On either collision
        """
        if await self.get_by_username(username):
            raise ValidationFailedError(
                f"Username {username!r} already registered", "Username already exists"
            )
        if await self.get_by_email(email):
            raise ValidationFailedError(
                f"Email {email!r} already registered", "Email already exists"
            )

    async def create(self, **fields: Any) -> UserModel:
        """
        Insert a user row.

        Callers run ``ensure_available`` first; a concurrent insert that wins
        the race between that check and this flush is caught on the unique
        columns and reported the same way.

        Raises:
            ValidationFailedError: Username or email taken by a concurrent insert
        """
        user = UserModel(**fields)
        try:
            async with self.session.begin_nested():
                self.session.add(user)
        except IntegrityError:
            username, email = fields.get("username"), fields.get("email")
            logger.warning("Concurrent registration collided on username=%r", username)
            if await self.get_by_username(username):
                raise ValidationFailedError(
                    f"Username {username!r} taken concurrently", "Username already exists"
                )
            if await self.get_by_email(email):
                raise ValidationFailedError(
                    f"Email {email!r} taken concurrently", "Email already exists"
                )
            raise
        return user

    async def update(self, user: UserModel, **fields: Any) -> UserModel:
        """Apply a partial update and bump ``updated_at``."""
        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = utcnow()
        await self.session.flush()
        return user

    async def list_by_status(
        self,
        status: str,
        user_type: Optional[str] = None,
    ) -> List[UserModel]:
        """Users in a lifecycle status, oldest first, optionally for one role."""
        stmt = select(UserModel).where(UserModel.status == status)
        if user_type:
            stmt = stmt.where(UserModel.user_type == user_type)
        stmt = stmt.order_by(UserModel.created_at, UserModel.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self, exclude_id: Optional[int] = None) -> List[UserModel]:
        """Every user, oldest first."""
        stmt = select(UserModel).order_by(UserModel.created_at, UserModel.id)
        if exclude_id is not None:
            stmt = stmt.where(UserModel.id != exclude_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
