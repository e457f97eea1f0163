from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.dependencies import get_current_user, get_db, get_settings
from ..exceptions import NotFoundException
from ..models import User
from ..schemas.auth import (
    AuthResponse,
    EmailStatusResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from ..schemas.common import MessageResponse
from ..schemas.user import UserResponse
from ..services.auth_service import AuthService
from ..services.email_service import EmailService


router = APIRouter()


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(db, settings)


def _auth_payload(user: User, access_token: str, refresh_token: str) -> dict:
    return {"user": user, "access_token": access_token, "refresh_token": refresh_token}


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    background_tasks: BackgroundTasks,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """
    **Register**

    Creates a customer account and returns an access/refresh token pair.
    A verification link is emailed in the background.

    **Request Body:**
    - **email**: unique, stored lowercase
    - **password**: 8-72 characters
    - **first_name**, **last_name** (required), **phone** (optional)
    """
    user, access_token, refresh_token = await service.register(data)

    token = await service.issue_email_verification(user)
    background_tasks.add_task(EmailService(settings).send_email_verification, user.email, user.first_name, token)

    return _auth_payload(user, access_token, refresh_token)


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """
    **Login**

    Returns 401 "Invalid credentials" for an unknown email or wrong password,
    and 401 "Account is deactivated" for disabled accounts.
    """
    return _auth_payload(*await service.login(data.email, data.password))


@router.post("/refresh", response_model=AuthResponse)
async def refresh_tokens(data: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    """Rotate a refresh token. The token sent is revoked."""
    return _auth_payload(*await service.refresh(data.refresh_token))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    data: LogoutRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Revoke the given refresh token, or all of the user's sessions when none is sent."""
    await service.logout(current_user, data.refresh_token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """
    **Forgot Password**

    Always answers with the same message so account existence is not revealed.
    When the account exists a reset link is emailed.
    """
    issued = await service.request_password_reset(data.email)
    if issued:
        user, token = issued
        email_service = EmailService(settings)
        background_tasks.add_task(email_service.send_password_reset, user.email, user.first_name, token)

    return {"message": "If an account exists for this email, a reset link has been sent"}


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    await service.reset_password(data.token, data.new_password)
    return {"message": "Password has been reset successfully"}


@router.get("/verify-email/{token}", response_model=MessageResponse)
async def verify_email(token: str, service: AuthService = Depends(get_auth_service)):
    await service.verify_email(token)
    return {"message": "Email verified successfully"}


@router.get("/email-status", response_model=EmailStatusResponse)
async def email_status(settings: Settings = Depends(get_settings)):
    """Outgoing mail configuration. Not exposed in production."""
    if settings.is_production:
        raise NotFoundException("Not Found")
    return EmailService(settings).status()
