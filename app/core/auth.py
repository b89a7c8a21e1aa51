"""
Credential hashing, verification tokens and signed session cookies.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from app.config import settings


# Password hashing context. scrypt with N=2**14 stores salt and derived key in one string.
pwd_context = CryptContext(
    schemes=["scrypt"],
    deprecated="auto",
    scrypt__default_rounds=14,
)


class SessionTokenData(BaseModel):
    """Data extracted from a session cookie."""

    session_id: str
    user_id: int
    exp: datetime


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash in constant time."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Unrecognized or corrupted hash string
        return False


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def dummy_verify() -> None:
    """Spend the same time as a real verification when the user does not exist."""
    pwd_context.dummy_verify()


def generate_verification_token() -> str:
    """Random 256-bit token, hex encoded, for email verification links."""
    return secrets.token_hex(32)


def verification_expiry(now: Optional[datetime] = None) -> datetime:
    """Expiry timestamp for a token issued at ``now``."""
    now = now or datetime.now(timezone.utc)
    return now + timedelta(hours=settings.verification_token_ttl_hours)


def generate_session_id() -> str:
    """Opaque identifier for a server-side session row."""
    return secrets.token_urlsafe(32)


def create_session_token(session_id: str, user_id: int, expires_at: datetime) -> str:
    """
    Create the signed value stored in the session cookie.

    Args:
        session_id: Primary key of the server-side session row
        user_id: Owner of the session
        expires_at: Session expiry

    Returns:
        Encoded JWT
    """
    payload = {
        "sid": session_id,
        "sub": str(user_id),
        "exp": expires_at,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.session_secret_key, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> Optional[SessionTokenData]:
    """
    Decode and validate a session cookie value.

    Returns:
        SessionTokenData if the signature and expiry are valid, None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.session_secret_key,
            algorithms=[settings.session_algorithm],
        )
        return SessionTokenData(
            session_id=payload["sid"],
            user_id=int(payload["sub"]),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (JWTError, KeyError, ValueError):
        return None
