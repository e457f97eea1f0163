from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import AsyncGenerator, List, Optional

from ..enums import UserRole
from ..exceptions import (
    AccessTokenRequiredException,
    AccountDeactivatedException,
    ForbiddenException,
    InvalidTokenException,
)
from ..core.config import Settings
from ..models.user import User
from ..services.file_service import FileService
from ..services.razorpay_client import RazorpayClient
from ..utils.auth import ACCESS, decode_token


bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """The frozen settings instance the application was built with."""
    return request.app.state.settings


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Asynchronous dependency that provides a database session for FastAPI routes.

    Yields:
        AsyncSession: An instance of the asynchronous database session.

    Usage:
        Use as a dependency in FastAPI endpoints to access the database session.
        The session is automatically closed after the request is processed.
    """

    async with request.app.state.session_factory() as db:
        yield db


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Retrieve the current authenticated user based on the provided access token.

    Args:
        credentials: The bearer credentials from the Authorization header.
        session (AsyncSession): The asynchronous database session dependency.
        settings (Settings): Application settings holding the JWT secrets.

    Returns:
        User: The active user the token was issued to.

    Raises:
        AccessTokenRequiredException: No bearer token was sent.
        InvalidTokenException: The token is malformed, expired or not an access token.
        AccountDeactivatedException: The user has been deactivated since the token was issued.
    """
    if credentials is None:
        raise AccessTokenRequiredException()

    payload = decode_token(credentials.credentials, settings, ACCESS)
    if payload is None:
        raise InvalidTokenException()

    try:
        user_id = int(payload["sub"])
    except (KeyError, ValueError):
        raise InvalidTokenException()

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise InvalidTokenException()

    if not user.is_active:
        raise AccountDeactivatedException()

    return user


class RoleChecker:
    """
    Dependency class for FastAPI route protection using Role Based Access Control (RBAC).

    It depends on ``get_current_user``, so authentication always runs before
    the role check, and both run before the request body is validated.

    Args:
        allowed_roles (List[UserRole]): Roles that are allowed to access the endpoint.
    """

    def __init__(self, allowed_roles: List[UserRole]):
        self.allowed_roles = allowed_roles


    async def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role in self.allowed_roles:
            return current_user

        raise ForbiddenException(detail="You don't have the required role to access this endpoint!")


get_current_admin = RoleChecker([UserRole.ADMIN])
admin_only = Depends(get_current_admin)


def get_file_service(settings: Settings = Depends(get_settings)) -> FileService:
    return FileService(settings.UPLOAD_DIR, settings.MAX_UPLOAD_SIZE)


def get_razorpay_client(settings: Settings = Depends(get_settings)) -> RazorpayClient:
    return RazorpayClient(settings)
