"""
Admin endpoints for reviewing registrations.
"""

from typing import List

from fastapi import APIRouter, BackgroundTasks

from app.api.deps import AdminDep, MailerDep, SessionDep
from app.api.routes.profile import profile_response
from app.core.lifecycle import UserStatus, UserType
from app.models.schemas import (
    AdminActionResponse,
    AdminUserProfileResponse,
    ApproveUserRequest,
    StatusMessageResponse,
    UserResponse,
)
from app.services.admin_service import AdminService
from app.services.profile_service import ProfileService
from app.services.user_service import UserService

router = APIRouter()


@router.post("/admin/approve-user", response_model=StatusMessageResponse)
async def approve_user(
    request: ApproveUserRequest,
    current_user: AdminDep,
    session: SessionDep,
    mailer: MailerDep,
    background_tasks: BackgroundTasks,
):
    """
    Approve or reject a verified registration.

    Approval issues a new verification link; both outcomes notify the user
    by email after the response is sent.
    """
    decision = await AdminService(session).decide(
        current_user, request.user_id, request.approved, request.message
    )
    background_tasks.add_task(
        mailer.send_approval_email,
        decision.user.email,
        decision.approved,
        decision.reason,
        decision.token,
    )

    if decision.approved:
        return StatusMessageResponse(message="User approved and verification email sent")
    return StatusMessageResponse(message="User registration rejected")


@router.get("/admin/pending-users", response_model=List[UserResponse])
async def list_pending_users(current_user: AdminDep, session: SessionDep):
    """Users who have not verified their email yet."""
    return await UserService(session).list_by_status(UserStatus.PENDING.value)


@router.get("/admin/pending-truckers", response_model=List[UserResponse])
async def list_pending_truckers(current_user: AdminDep, session: SessionDep):
    """Verified truckers awaiting an admin decision."""
    return await UserService(session).list_by_status(
        UserStatus.VERIFIED.value, user_type=UserType.TRUCKER.value
    )


@router.get("/admin/pending-brokers", response_model=List[UserResponse])
async def list_pending_brokers(current_user: AdminDep, session: SessionDep):
    """Verified brokers awaiting an admin decision."""
    return await UserService(session).list_by_status(
        UserStatus.VERIFIED.value, user_type=UserType.BROKER.value
    )


@router.get("/admin/all-users", response_model=List[UserResponse])
async def list_all_users(current_user: AdminDep, session: SessionDep):
    """Every user except the calling admin, oldest first."""
    return await UserService(session).list_all(exclude_id=current_user.id)


@router.get("/admin/action-history", response_model=List[AdminActionResponse])
@router.get("/admin/approval-history", response_model=List[AdminActionResponse], include_in_schema=False)
async def list_action_history(current_user: AdminDep, session: SessionDep):
    """Decisions taken by the calling admin, newest first."""
    return await AdminService(session).list_actions(current_user.id)


@router.get("/admin/user-profile/{user_id}", response_model=AdminUserProfileResponse)
async def get_user_profile(user_id: int, current_user: AdminDep, session: SessionDep):
    """A user's record together with their role profile (null for admins)."""
    user = await UserService(session).require(user_id)
    profile = await ProfileService(session).get(user.user_type, user.id)
    return AdminUserProfileResponse(
        user=UserResponse.model_validate(user),
        profile=profile_response(user.user_type, profile) if profile else None,
    )
