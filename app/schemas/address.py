from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from .common import RequestSchema


class AddressCreate(RequestSchema):
    label: Optional[str] = Field(None, max_length=50)
    street: str = Field(..., min_length=5, max_length=200)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    zip_code: str = Field(..., min_length=5, max_length=20)
    country: str = Field(..., min_length=2, max_length=100)
    is_default: bool = False


class AddressUpdate(RequestSchema):
    label: Optional[str] = Field(None, max_length=50)
    street: Optional[str] = Field(None, min_length=5, max_length=200)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=100)
    zip_code: Optional[str] = Field(None, min_length=5, max_length=20)
    country: Optional[str] = Field(None, min_length=2, max_length=100)
    is_default: Optional[bool] = None


class AddressResponse(BaseModel):
    id: int
    label: Optional[str] = None
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    is_default: bool
    created_at: datetime

    class Config:
        from_attributes = True
