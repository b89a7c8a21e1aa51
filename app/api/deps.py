"""
API route dependencies.
"""

from typing import Annotated, Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyCookie
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.lifecycle import UserType
from app.db.database import get_db_session
from app.db.models import UserModel
from app.services.auth_service import AuthService
from app.services.email_service import EmailService, get_email_service


# Session cookie scheme. Missing cookies are handled by get_current_user.
session_cookie = APIKeyCookie(name=settings.session_cookie_name, auto_error=False)


async def get_current_user(
    token: Optional[str] = Depends(session_cookie),
    session: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """
    Dependency to get the current authenticated user.

    Requires a session cookie naming a live server-side session.
    """
    user = await AuthService(session).resolve_session(token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user


def require_role(*user_types: UserType, detail: str = "Forbidden") -> Callable:
    """Dependency factory restricting a route to the given account types."""
    allowed = {user_type.value for user_type in user_types}

    async def dependency(current_user: UserModel = Depends(get_current_user)) -> UserModel:
        if current_user.user_type not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=detail,
            )
        return current_user

    return dependency


# Dependency annotations
SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
SessionCookieDep = Annotated[Optional[str], Depends(session_cookie)]
CurrentUserDep = Annotated[UserModel, Depends(get_current_user)]
TruckerDep = Annotated[UserModel, Depends(require_role(UserType.TRUCKER))]
BrokerDep = Annotated[UserModel, Depends(require_role(UserType.BROKER))]
AdminDep = Annotated[UserModel, Depends(require_role(UserType.ADMIN, detail="Admin access required"))]
MailerDep = Annotated[EmailService, Depends(get_email_service)]
