"""
Role-specific profile persistence.
"""

from typing import Any, Optional, Type, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationFailedError
from app.core.lifecycle import UserType
from app.db.models import BrokerProfileModel, TruckerProfileModel

ProfileModel = Union[TruckerProfileModel, BrokerProfileModel]

PROFILE_MODELS: dict[str, Type[ProfileModel]] = {
    UserType.TRUCKER.value: TruckerProfileModel,
    UserType.BROKER.value: BrokerProfileModel,
}


def profile_model_for(user_type: str) -> Type[ProfileModel]:
    """ORM class holding the profile for a role."""
    try:
        return PROFILE_MODELS[user_type]
    except KeyError:
        raise ValidationFailedError(
            f"No profile kind for user_type={user_type}", "This account type has no profile"
        )


class ProfileService:
    """One profile row per trucker or broker account, keyed by user id."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_type: str, user_id: int) -> Optional[ProfileModel]:
        """Get the profile of ``user_id``, or None. Admins never have one."""
        model = PROFILE_MODELS.get(user_type)
        if model is None:
            return None
        result = await self.session.execute(select(model).where(model.user_id == user_id))
        return result.scalar_one_or_none()

    async def require(self, user_type: str, user_id: int) -> ProfileModel:
        profile = await self.get(user_type, user_id)
        if profile is None:
            raise NotFoundError(f"No {user_type} profile for user {user_id}", "Profile not found")
        return profile

    async def create(self, user_type: str, user_id: int, **fields: Any) -> ProfileModel:
        """Create the profile matching ``user_type``."""
        model = profile_model_for(user_type)
        profile = model(user_id=user_id, **fields)
        self.session.add(profile)
        await self.session.flush()
        return profile

    async def update(self, user_type: str, user_id: int, **fields: Any) -> ProfileModel:
        """
        Merge ``fields`` into an existing profile.

        Raises:
            NotFoundError: If the user has no profile (no upsert)
        """
        profile = await self.require(user_type, user_id)
        for key, value in fields.items():
            setattr(profile, key, value)
        await self.session.flush()
        return profile
