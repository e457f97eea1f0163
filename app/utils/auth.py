import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from ..core.config import Settings


ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed_password.encode())


def hash_token(token: str) -> str:
    """Digest stored in place of refresh and reset tokens."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def _create_token(
    user_id: int,
    role: str,
    token_type: str,
    secret: str,
    expiry_seconds: int,
    algorithm: str,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "type": token_type,
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": now + timedelta(seconds=expiry_seconds),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def create_access_token(user_id: int, role: str, settings: Settings) -> str:
    return _create_token(
        user_id, role, ACCESS,
        settings.JWT_ACCESS_SECRET, settings.ACCESS_TOKEN_EXPIRY, settings.JWT_ALGORITHM,
    )


def create_refresh_token(user_id: int, role: str, settings: Settings) -> str:
    return _create_token(
        user_id, role, REFRESH,
        settings.JWT_REFRESH_SECRET, settings.REFRESH_TOKEN_EXPIRY, settings.JWT_ALGORITHM,
    )


def decode_token(token: str, settings: Settings, token_type: str = ACCESS) -> Optional[dict]:
    """
    Decode and verify a JWT of the given type.

    Returns the payload, or None when the signature, expiry or type is wrong.
    """
    secret = settings.JWT_ACCESS_SECRET if token_type == ACCESS else settings.JWT_REFRESH_SECRET
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None

    if payload.get("type") != token_type:
        return None

    return payload
