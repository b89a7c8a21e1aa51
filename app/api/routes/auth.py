"""
Authentication endpoints: registration, email verification, login and logout.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Body, Query, Response, status
from fastapi.responses import RedirectResponse

from app.api.deps import CurrentUserDep, MailerDep, SessionCookieDep, SessionDep
from app.config import settings
from app.models.schemas import (
    AdminRegisterRequest,
    LoginRequest,
    RegisterRequest,
    RegistrationResponse,
    StatusMessageResponse,
    UserResponse,
)
from app.services.auth_service import AuthService

router = APIRouter()

REGISTRATION_MESSAGE = (
    "Registration successful. Please check your email to verify your account. "
    "After verification, an administrator will review your application."
)


def set_session_cookie(response: Response, token: str) -> None:
    """Attach the signed session cookie to ``response``."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


@router.post(
    "/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: Annotated[RegisterRequest, Body(discriminator="user_type")],
    session: SessionDep,
    mailer: MailerDep,
    background_tasks: BackgroundTasks,
):
    """
    Register a trucker or broker account.

    The account starts pending; a verification link is emailed after the
    response is sent. Email failures do not affect the result.
    """
    user, token = await AuthService(session).register(request)
    background_tasks.add_task(mailer.send_verification_email, user.email, token)

    return RegistrationResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        status=user.status,
        registration_complete=True,
        message=REGISTRATION_MESSAGE,
    )


@router.post(
    "/register/admin",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_admin(request: AdminRegisterRequest, response: Response, session: SessionDep):
    """Create an admin account with the configured admin key and log it in."""
    auth = AuthService(session)
    user = await auth.register_admin(request)
    _, token = await auth.create_session(user)
    set_session_cookie(response, token)
    return user


@router.get("/verify", response_class=RedirectResponse, status_code=status.HTTP_302_FOUND)
async def verify_email(session: SessionDep, token: str = Query(..., min_length=1)):
    """Consume a verification token and redirect to the login page."""
    await AuthService(session).verify_email(token)
    return RedirectResponse(settings.verified_redirect_path, status_code=status.HTTP_302_FOUND)


@router.post("/login", response_model=UserResponse)
async def login(request: LoginRequest, response: Response, session: SessionDep):
    """
    Login with username and password.

    Sets the session cookie and returns the user.
    """
    user, token = await AuthService(session).login(request.username, request.password)
    set_session_cookie(response, token)
    return user


@router.post("/admin/login", response_model=UserResponse)
async def admin_login(request: LoginRequest, response: Response, session: SessionDep):
    """Login restricted to admin accounts."""
    user, token = await AuthService(session).login(
        request.username, request.password, admin_only=True
    )
    set_session_cookie(response, token)
    return user


@router.post("/logout", response_model=StatusMessageResponse)
async def logout(response: Response, session: SessionDep, token: SessionCookieDep):
    """Destroy the current session, if any, and clear the cookie."""
    await AuthService(session).logout(token)
    clear_session_cookie(response)
    return StatusMessageResponse(message="Logged out")


@router.get("/user", response_model=UserResponse)
async def get_current_user(current_user: CurrentUserDep):
    """Return the authenticated caller's own record."""
    return current_user
