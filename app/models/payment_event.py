from sqlalchemy import Boolean, Column, Integer, JSON, String, Text

from ..db.base import Base
from .base import TimeStampMixin


class PaymentEvent(Base, TimeStampMixin):
    """Gateway webhook deliveries, keyed by the gateway's event id so replays are ignored."""

    __tablename__ = "payment_events"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String, nullable=False, unique=True, index=True)
    event_type = Column(String, nullable=False)
    payload = Column(JSON, nullable=False)
    processed = Column(Boolean, nullable=False, default=False)
    error = Column(Text, nullable=True)
