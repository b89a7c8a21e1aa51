"""
Account lifecycle state machine.

Non-admin accounts move along a fixed set of edges::

    pending --(email verified)--> verified --(admin approves)--> approved
                                           \\-(admin rejects)--> rejected

Only ``approved`` accounts may log in. Admin accounts are created ready to
log in and never pass through verification or review.
"""

from enum import Enum
from typing import Optional

from app.core.exceptions import AccountStatusError, InvalidTransitionError


class UserType(str, Enum):
    """Account roles."""

    TRUCKER = "trucker"
    BROKER = "broker"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Lifecycle status values."""

    PENDING = "pending"
    VERIFIED = "verified"
    APPROVED = "approved"
    REJECTED = "rejected"


TRANSITIONS: dict[UserStatus, frozenset[UserStatus]] = {
    UserStatus.PENDING: frozenset({UserStatus.VERIFIED}),
    UserStatus.VERIFIED: frozenset({UserStatus.APPROVED, UserStatus.REJECTED}),
    UserStatus.APPROVED: frozenset(),
    UserStatus.REJECTED: frozenset(),
}

LOGIN_BLOCKED_MESSAGES: dict[UserStatus, str] = {
    UserStatus.PENDING: (
        "Your account is pending verification. Please check your email to verify your account."
    ),
    UserStatus.VERIFIED: "Your account has been verified but is awaiting admin approval.",
    UserStatus.REJECTED: (
        "Your registration has been rejected. Please contact support for more information."
    ),
}


def can_transition(current: str, target: str) -> bool:
    """Whether ``current -> target`` is one of the defined edges."""
    try:
        return UserStatus(target) in TRANSITIONS[UserStatus(current)]
    except ValueError:
        return False


def ensure_transition(current: str, target: str) -> UserStatus:
    """Return the target status or raise if the edge does not exist."""
    if not can_transition(current, target):
        raise InvalidTransitionError(f"Account status cannot move from {current} to {target}")
    return UserStatus(target)


def login_block_reason(user_type: str, status: str) -> Optional[str]:
    """Message explaining why the account cannot log in, or None if it can."""
    if user_type == UserType.ADMIN.value:
        return None
    if status == UserStatus.APPROVED.value:
        return None
    try:
        return LOGIN_BLOCKED_MESSAGES.get(UserStatus(status), AccountStatusError.default_user_message)
    except ValueError:
        return AccountStatusError.default_user_message


def ensure_can_login(user_type: str, status: str) -> None:
    """Raise AccountStatusError with a status-specific message when login is blocked."""
    reason = login_block_reason(user_type, status)
    if reason is not None:
        raise AccountStatusError(f"Login blocked for status={status}", reason)
