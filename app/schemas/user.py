from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, StringConstraints
from typing import Annotated, Optional

from ..enums import UserRole
from .common import RequestSchema


validated_mobile_num = Annotated[str, StringConstraints(min_length=10, max_length=15, pattern=r'^\+?[1-9]\d{1,14}$')]
validated_password = Annotated[str, StringConstraints(min_length=8, max_length=72)]


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    first_name: str
    last_name: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    role: UserRole
    is_email_verified: bool
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(RequestSchema):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[validated_mobile_num] = None


class ChangePasswordRequest(RequestSchema):
    current_password: str
    new_password: validated_password


class AdminUserUpdate(RequestSchema):
    """ Fields an admin may change on any account. """

    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[validated_mobile_num] = None
    is_email_verified: Optional[bool] = None


class UserStatusUpdate(RequestSchema):
    is_active: bool


class UserRoleUpdate(RequestSchema):
    # validated by the service so an unknown role is a 400 with a clear message
    role: str
