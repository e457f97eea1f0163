from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from ..db.base import Base
from .base import TimeStampMixin


class Banner(Base, TimeStampMixin):
    __tablename__ = "banners"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    image = Column(String, nullable=False)
    link = Column(String, nullable=True)
    position = Column(String, nullable=True, index=True)  # e.g. "hero", "sidebar"
    description = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
