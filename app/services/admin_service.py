"""
Admin review of new registrations and the append-only decision log.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import generate_verification_token, verification_expiry
from app.core.exceptions import InvalidTransitionError
from app.core.lifecycle import UserStatus, UserType, ensure_transition
from app.db.models import AdminActionModel, UserModel
from app.db.models.base import utcnow
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

APPROVED_NOTE = "Approved by admin"
REJECTED_NOTE = "Rejected by admin"


@dataclass
class Decision:
    """Outcome of an admin decision, with what the notification email needs."""

    user: UserModel
    action: AdminActionModel
    approved: bool
    token: Optional[str] = None
    reason: Optional[str] = None


class AdminService:
    """Service for approving or rejecting verified registrations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserService(session)

    async def record_action(
        self,
        admin_id: int,
        user_id: int,
        action: str,
        reason: Optional[str] = None,
    ) -> AdminActionModel:
        """Append one audit record."""
        record = AdminActionModel(
            admin_id=admin_id,
            user_id=user_id,
            action=action,
            reason=reason,
            created_at=utcnow(),
        )
        self.session.add(record)
        await self.session.flush()
        return record

    async def decide(
        self,
        admin: UserModel,
        user_id: int,
        approved: bool,
        message: Optional[str] = None,
    ) -> Decision:
        """
        Approve or reject a ``verified`` registration.

        Approval issues a new verification token and expiry; rejection
        clears any outstanding token and keeps the reason in the notes.
        Either way exactly one AdminAction row is appended.

        Raises:
            NotFoundError: No such user
            InvalidTransitionError: Target is an admin or not ``verified``
        """
        user = await self.users.require(user_id)
        if user.user_type == UserType.ADMIN.value:
            raise InvalidTransitionError(f"User {user_id} is an admin and cannot be reviewed")

        target = UserStatus.APPROVED if approved else UserStatus.REJECTED
        try:
            ensure_transition(user.status, target.value)
        except InvalidTransitionError:
            logger.warning(
                "Admin id=%s cannot move user id=%s from %s to %s",
                admin.id,
                user_id,
                user.status,
                target.value,
            )
            raise

        token = None
        if approved:
            token = generate_verification_token()
            await self.users.update(
                user,
                status=target.value,
                verification_token=token,
                verification_expires=verification_expiry(),
                verification_notes=message or APPROVED_NOTE,
            )
        else:
            await self.users.update(
                user,
                status=target.value,
                verification_token=None,
                verification_expires=None,
                verification_notes=message or REJECTED_NOTE,
            )

        action = await self.record_action(
            admin_id=admin.id,
            user_id=user.id,
            action="approve" if approved else "reject",
            reason=message,
        )
        logger.info("Admin id=%s %s user id=%s", admin.id, "approved" if approved else "rejected", user.id)
        return Decision(user=user, action=action, approved=approved, token=token, reason=message)

    async def list_actions(self, admin_id: int) -> List[AdminActionModel]:
        """Decisions taken by one admin, newest first."""
        result = await self.session.execute(
            select(AdminActionModel)
            .where(AdminActionModel.admin_id == admin_id)
            .order_by(AdminActionModel.created_at.desc(), AdminActionModel.id.desc())
        )
        return list(result.scalars().all())
