import logging
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio.session import AsyncSession

from .. import exceptions
from ..core.config import Settings
from ..enums import UserRole
from ..models import User
from ..models.base import utcnow
from ..schemas.auth import RegisterRequest
from ..utils.auth import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)


logger = logging.getLogger(__name__)


# refresh tokens kept per user; the oldest are dropped first
MAX_SESSIONS = 10


class AuthService:
    """
    Service class for handling user authentication and account management.
    """

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings


    async def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Retrieves a user by email address, or None when there is no such account.
        """

        stmt = select(User).where(User.email == email.lower())
        return (await self.db.execute(stmt)).scalars().first()


    async def register(self, data: RegisterRequest) -> Tuple[User, str, str]:
        """ Creates a new user account and signs it in. """

        if await self.get_user_by_email(data.email):
            raise exceptions.UserAlreadyExistsException()

        user_data = data.model_dump(exclude={"password"})
        db_user = User(
            **user_data,
            hashed_password=hash_password(data.password),
            role=UserRole.USER,
            refresh_tokens=[],
        )

        try:
            self.db.add(db_user)
            await self.db.commit()
        except IntegrityError:
            # a concurrent registration won the unique index on email
            await self.db.rollback()
            raise exceptions.UserAlreadyExistsException()

        await self.db.refresh(db_user)
        logger.info("Registered user %s", db_user.id)

        access_token, refresh_token = await self._issue_tokens(db_user)
        return db_user, access_token, refresh_token


    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        user = await self.get_user_by_email(email)

        if not user or not verify_password(password, user.hashed_password):
            raise exceptions.InvalidUserCredentialsException()

        if not user.is_active:
            raise exceptions.AccountDeactivatedException()

        user.last_login = utcnow()
        access_token, refresh_token = await self._issue_tokens(user)
        logger.info("User %s signed in", user.id)
        return user, access_token, refresh_token


    async def refresh(self, refresh_token: str) -> Tuple[User, str, str]:
        """ Exchange a refresh token for a new pair. The old refresh token is revoked. """

        payload = decode_token(refresh_token, self.settings, REFRESH)
        if payload is None:
            raise exceptions.UnauthorizedException("Invalid refresh token")

        user = await self.db.get(User, int(payload["sub"]))
        digest = hash_token(refresh_token)
        if not user or digest not in (user.refresh_tokens or []):
            raise exceptions.UnauthorizedException("Invalid refresh token")

        if not user.is_active:
            raise exceptions.AccountDeactivatedException()

        user.refresh_tokens = [t for t in user.refresh_tokens if t != digest]
        access_token, new_refresh_token = await self._issue_tokens(user)
        return user, access_token, new_refresh_token


    async def logout(self, user: User, refresh_token: Optional[str] = None) -> None:
        """ Revoke one refresh token, or every session when none is given. """

        if refresh_token:
            digest = hash_token(refresh_token)
            user.refresh_tokens = [t for t in (user.refresh_tokens or []) if t != digest]
        else:
            user.refresh_tokens = []

        await self.db.commit()
        logger.info("User %s signed out", user.id)


    async def request_password_reset(self, email: str) -> Optional[Tuple[User, str]]:
        """
        Store a reset token for the account, if it exists.

        Returns the user and the plain token so the caller can email it, or
        None. Callers must answer the same way in both cases.
        """

        user = await self.get_user_by_email(email)
        if not user or not user.is_active:
            return None

        token = generate_reset_token()
        user.reset_password_token = hash_token(token)
        user.reset_password_expires = utcnow() + timedelta(seconds=self.settings.PASSWORD_RESET_EXPIRY)
        await self.db.commit()

        logger.info("Password reset requested for user %s", user.id)
        return user, token


    async def issue_email_verification(self, user: User) -> str:
        """ Store a fresh verification token for the user and return it in plain form for the email. """

        token = generate_reset_token()
        user.email_verification_token = hash_token(token)
        user.email_verification_expires = utcnow() + timedelta(seconds=self.settings.EMAIL_VERIFICATION_EXPIRY)
        await self.db.commit()
        return token


    async def verify_email(self, token: str) -> User:
        stmt = select(User).where(User.email_verification_token == hash_token(token))
        user = (await self.db.execute(stmt)).scalars().first()

        if not user or not user.email_verification_expires or user.email_verification_expires < utcnow():
            raise exceptions.BadRequestException("Invalid or expired verification token")

        user.is_email_verified = True
        user.email_verification_token = None
        user.email_verification_expires = None
        await self.db.commit()

        logger.info("Email verified for user %s", user.id)
        return user


    async def reset_password(self, token: str, new_password: str) -> None:
        stmt = select(User).where(User.reset_password_token == hash_token(token))
        user = (await self.db.execute(stmt)).scalars().first()

        if not user or not user.reset_password_expires or user.reset_password_expires < utcnow():
            raise exceptions.BadRequestException("Invalid or expired reset token")

        user.hashed_password = hash_password(new_password)
        user.reset_password_token = None
        user.reset_password_expires = None
        user.refresh_tokens = []
        await self.db.commit()

        logger.info("Password reset for user %s", user.id)


    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.hashed_password):
            raise exceptions.BadRequestException("Current password is incorrect")

        user.hashed_password = hash_password(new_password)
        user.refresh_tokens = []
        await self.db.commit()


    async def _issue_tokens(self, user: User) -> Tuple[str, str]:
        role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
        access_token = create_access_token(user.id, role, self.settings)
        refresh_token = create_refresh_token(user.id, role, self.settings)

        tokens = list(user.refresh_tokens or [])
        tokens.append(hash_token(refresh_token))
        user.refresh_tokens = tokens[-MAX_SESSIONS:]

        await self.db.commit()
        await self.db.refresh(user)
        return access_token, refresh_token
