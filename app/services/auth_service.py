"""
Authentication service: registration, email verification, login and sessions.
"""

import logging
import secrets
from datetime import timedelta
from typing import Optional, Tuple, Union

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.auth import (
    create_session_token,
    decode_session_token,
    dummy_verify,
    generate_session_id,
    generate_verification_token,
    hash_password,
    verification_expiry,
    verify_password,
)
from app.core.exceptions import (
    AccountStatusError,
    AuthenticationError,
    PermissionDeniedError,
    ValidationFailedError,
)
from app.core.lifecycle import UserStatus, UserType, ensure_can_login, ensure_transition
from app.db.models import UserModel, UserSessionModel
from app.db.models.base import as_utc, utcnow
from app.models.schemas import (
    AccountFields,
    AdminRegisterRequest,
    BrokerRegisterRequest,
    TruckerRegisterRequest,
)
from app.services.profile_service import ProfileService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"

# Request fields that belong to the account rather than the role profile
ACCOUNT_FIELD_NAMES = set(AccountFields.model_fields) | {"user_type"}


def trucker_profile_fields(payload: TruckerRegisterRequest) -> dict:
    """Initial trucker profile values, with contact details falling back to the account."""
    fields = {
        key: value
        for key, value in payload.model_dump(exclude=ACCOUNT_FIELD_NAMES | {"vehicles"}).items()
        if value is not None
    }
    fields["vehicles"] = [
        vehicle.model_dump(by_alias=True, exclude_none=True) for vehicle in payload.vehicles
    ]
    fields.setdefault("contact_number", payload.phone)
    fields.setdefault("business_email", payload.email)
    return fields


def broker_profile_fields(payload: BrokerRegisterRequest) -> dict:
    """Initial broker profile values, with contact details falling back to the account."""
    fields = {
        key: value
        for key, value in payload.model_dump(exclude=ACCOUNT_FIELD_NAMES).items()
        if value is not None
    }
    fields.setdefault("contact_number", payload.phone)
    fields.setdefault("business_email", payload.email)
    fields.setdefault("contact_person_name", f"{payload.first_name} {payload.last_name}".strip())
    return fields


class AuthService:
    """Service for the account lifecycle and login sessions."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserService(session)
        self.profiles = ProfileService(session)

    async def register(
        self,
        payload: Union[TruckerRegisterRequest, BrokerRegisterRequest],
    ) -> Tuple[UserModel, str]:
        """
        Register a trucker or broker.

        The user starts ``pending`` with a fresh verification token, and the
        matching role profile is created in the same transaction.

        Returns:
            The created user and the verification token to email

        Raises:
            ValidationFailedError: If the username or email is taken
        """
        await self.users.ensure_available(payload.username, payload.email)

        token = generate_verification_token()
        user = await self.users.create(
            username=payload.username,
            password_hash=hash_password(payload.password),
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
            user_type=payload.user_type,
            status=UserStatus.PENDING.value,
            verification_token=token,
            verification_expires=verification_expiry(),
        )

        if isinstance(payload, TruckerRegisterRequest):
            profile_fields = trucker_profile_fields(payload)
        else:
            profile_fields = broker_profile_fields(payload)
        await self.profiles.create(user.user_type, user.id, **profile_fields)

        logger.info("Registered %s user id=%s username=%s", user.user_type, user.id, user.username)
        return user, token

    async def register_admin(self, payload: AdminRegisterRequest) -> UserModel:
        """
        Create an admin account directly in ``approved``.

        Raises:
            PermissionDeniedError: If admin registration is disabled or the key is wrong
            ValidationFailedError: If the username or email is taken
        """
        expected = settings.admin_registration_key
        if not expected or not secrets.compare_digest(payload.admin_key, expected):
            logger.warning("Rejected admin registration for username=%s", payload.username)
            raise PermissionDeniedError("Admin key mismatch", "Invalid admin key")

        await self.users.ensure_available(payload.username, payload.email)
        user = await self.users.create(
            username=payload.username,
            password_hash=hash_password(payload.password),
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
            user_type=UserType.ADMIN.value,
            status=UserStatus.APPROVED.value,
        )
        logger.info("Registered admin user id=%s username=%s", user.id, user.username)
        return user

    async def verify_email(self, token: str) -> UserModel:
        """
        Consume a verification token.

        A ``pending`` user moves to ``verified``; any other holder (an
        approved user following the link sent at approval) keeps its status.
        The token and expiry are cleared either way.

        Raises:
            ValidationFailedError: If the token is unknown or expired
        """
        user = await self.users.get_by_verification_token(token)
        if not user:
            logger.warning("Verification attempted with unknown token")
            raise ValidationFailedError(
                "Unknown verification token", "Invalid or expired verification token"
            )

        expires = as_utc(user.verification_expires)
        if expires is not None and expires < utcnow():
            logger.warning("Expired verification token for user id=%s", user.id)
            raise ValidationFailedError(
                f"Verification token for user {user.id} expired at {expires.isoformat()}",
                "Verification token has expired",
            )

        status = user.status
        if status == UserStatus.PENDING.value:
            status = ensure_transition(status, UserStatus.VERIFIED.value).value

        await self.users.update(
            user,
            status=status,
            verification_token=None,
            verification_expires=None,
        )
        logger.info("Verified email for user id=%s (status=%s)", user.id, user.status)
        return user

    async def authenticate(
        self,
        username: str,
        password: str,
        admin_only: bool = False,
    ) -> UserModel:
        """
        Check credentials and the lifecycle gate.

        Credentials are checked before status, so only a caller who knows
        the password learns why the account cannot log in.

        Raises:
            AuthenticationError: Unknown username or wrong password
            PermissionDeniedError: ``admin_only`` and the account is not an admin
            AccountStatusError: The account may not log in yet
        """
        user = await self.users.get_by_username(username)
        if not user:
            dummy_verify()
            logger.warning("Login failed: unknown username")
            raise AuthenticationError("Unknown username", INVALID_CREDENTIALS)

        if not verify_password(password, user.password_hash):
            logger.warning("Login failed: bad password for user id=%s", user.id)
            raise AuthenticationError(f"Bad password for user {user.id}", INVALID_CREDENTIALS)

        if admin_only and user.user_type != UserType.ADMIN.value:
            logger.warning("Admin login refused for non-admin user id=%s", user.id)
            raise PermissionDeniedError(
                f"User {user.id} is not an admin", "This login is for admin accounts only."
            )

        try:
            ensure_can_login(user.user_type, user.status)
        except AccountStatusError:
            logger.warning("Login blocked for user id=%s status=%s", user.id, user.status)
            raise

        return user

    async def create_session(self, user: UserModel) -> Tuple[UserSessionModel, str]:
        """
        Persist a login session and sign the cookie value that refers to it.

        Returns:
            The session row and the signed cookie value
        """
        now = utcnow()
        row = UserSessionModel(
            id=generate_session_id(),
            user_id=user.id,
            created_at=now,
            expires_at=now + timedelta(days=settings.session_max_age_days),
        )
        self.session.add(row)
        await self.session.flush()
        logger.info("Opened session for user id=%s", user.id)
        return row, create_session_token(row.id, user.id, row.expires_at)

    async def login(
        self,
        username: str,
        password: str,
        admin_only: bool = False,
    ) -> Tuple[UserModel, str]:
        """Authenticate and open a session. Returns the user and cookie value."""
        user = await self.authenticate(username, password, admin_only=admin_only)
        _, token = await self.create_session(user)
        return user, token

    async def resolve_session(self, token: Optional[str]) -> Optional[UserModel]:
        """
        Resolve a cookie value to its user.

        Returns:
            The user if the signature is valid and the session row exists,
            belongs to that user and has not expired; None otherwise
        """
        if not token:
            return None

        data = decode_session_token(token)
        if data is None:
            return None

        row = await self.session.get(UserSessionModel, data.session_id)
        if row is None or row.user_id != data.user_id:
            return None
        if as_utc(row.expires_at) <= utcnow():
            return None

        return await self.users.get_by_id(row.user_id)

    async def logout(self, token: Optional[str]) -> None:
        """Destroy the session named by the cookie, if any."""
        if not token:
            return
        data = decode_session_token(token)
        if data is None:
            return
        await self.session.execute(
            delete(UserSessionModel).where(UserSessionModel.id == data.session_id)
        )
        logger.info("Closed session for user id=%s", data.user_id)

    async def purge_expired_sessions(self) -> int:
        """Delete expired session rows. Returns the number removed."""
        result = await self.session.execute(
            delete(UserSessionModel).where(UserSessionModel.expires_at <= utcnow())
        )
        return result.rowcount or 0
