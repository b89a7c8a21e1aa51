"""
Profile endpoints for truckers and brokers.
"""

from typing import Union

from fastapi import APIRouter

from app.api.deps import BrokerDep, CurrentUserDep, SessionDep, TruckerDep
from app.core.lifecycle import UserType
from app.models.schemas import (
    BrokerProfileResponse,
    BrokerProfileUpdate,
    TruckerProfileResponse,
    TruckerProfileUpdate,
)
from app.services.profile_service import ProfileService

router = APIRouter()


def profile_response(user_type: str, profile) -> Union[TruckerProfileResponse, BrokerProfileResponse]:
    """Serialize a profile row with the schema matching its role."""
    if user_type == UserType.TRUCKER.value:
        return TruckerProfileResponse.model_validate(profile)
    return BrokerProfileResponse.model_validate(profile)


@router.get(
    "/profile",
    response_model=Union[TruckerProfileResponse, BrokerProfileResponse],
)
async def get_profile(current_user: CurrentUserDep, session: SessionDep):
    """Get the caller's own profile. Admins have none (404)."""
    profile = await ProfileService(session).require(current_user.user_type, current_user.id)
    return profile_response(current_user.user_type, profile)


@router.get("/profile/trucker", response_model=TruckerProfileResponse)
async def get_trucker_profile(current_user: TruckerDep, session: SessionDep):
    profile = await ProfileService(session).require(UserType.TRUCKER.value, current_user.id)
    return TruckerProfileResponse.model_validate(profile)


@router.put("/profile/trucker", response_model=TruckerProfileResponse)
async def update_trucker_profile(
    request: TruckerProfileUpdate,
    current_user: TruckerDep,
    session: SessionDep,
):
    """Partially update the caller's trucker profile."""
    fields = request.model_dump(exclude_unset=True, exclude_none=True, exclude={"vehicles"})
    if request.vehicles is not None:
        fields["vehicles"] = [
            vehicle.model_dump(by_alias=True, exclude_none=True) for vehicle in request.vehicles
        ]
    profile = await ProfileService(session).update(UserType.TRUCKER.value, current_user.id, **fields)
    return TruckerProfileResponse.model_validate(profile)


@router.get("/profile/broker", response_model=BrokerProfileResponse)
async def get_broker_profile(current_user: BrokerDep, session: SessionDep):
    profile = await ProfileService(session).require(UserType.BROKER.value, current_user.id)
    return BrokerProfileResponse.model_validate(profile)


@router.put("/profile/broker", response_model=BrokerProfileResponse)
async def update_broker_profile(
    request: BrokerProfileUpdate,
    current_user: BrokerDep,
    session: SessionDep,
):
    """Partially update the caller's broker profile."""
    fields = request.model_dump(exclude_unset=True, exclude_none=True)
    profile = await ProfileService(session).update(UserType.BROKER.value, current_user.id, **fields)
    return BrokerProfileResponse.model_validate(profile)
