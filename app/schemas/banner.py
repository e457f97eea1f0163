from datetime import datetime
from pydantic import BaseModel, Field, model_validator
from typing import Optional

from .common import RequestSchema, UTCDateTime


class BannerCreate(RequestSchema):
    title: str = Field(..., min_length=1, max_length=200)
    image: str = Field(..., min_length=1)
    link: Optional[str] = None
    position: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    active: bool = True
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None

    @model_validator(mode='after')
    def check_window(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValueError('startDate must be before endDate')
        return self


class BannerUpdate(RequestSchema):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    image: Optional[str] = Field(None, min_length=1)
    link: Optional[str] = None
    position: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    active: Optional[bool] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None


class BannerResponse(BaseModel):
    id: int
    title: str
    image: str
    link: Optional[str] = None
    position: Optional[str] = None
    description: Optional[str] = None
    active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
