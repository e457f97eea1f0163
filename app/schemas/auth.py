from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from .common import RequestSchema
from .user import UserResponse, validated_mobile_num, validated_password


class RegisterRequest(RequestSchema):
    """ This is a schema to create a user account. """

    email: EmailStr
    password: validated_password
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    phone: Optional[validated_mobile_num] = None

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()


class LoginRequest(RequestSchema):
    email: EmailStr
    password: str

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()


class RefreshRequest(RequestSchema):
    refresh_token: str


class LogoutRequest(RequestSchema):
    refresh_token: Optional[str] = None


class ForgotPasswordRequest(RequestSchema):
    email: EmailStr


class ResetPasswordRequest(RequestSchema):
    token: str
    new_password: validated_password


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(TokenPair):
    user: UserResponse


class EmailStatusResponse(BaseModel):
    enabled: bool
    configured: bool
    server: Optional[str] = None
    port: int
    from_address: Optional[str] = None
