from sqlalchemy import Boolean, Column, DateTime, Enum, Float, Integer, String

from ..db.base import Base
from ..enums import ButtonVariant, FlashDealType
from .base import TimeStampMixin


class FlashDeal(Base, TimeStampMixin):
    """
    A time-windowed promotion shown on the storefront.

    Attributes:
        title (str): Headline of the deal.
        description (str): Body copy.
        type (FlashDealType): discount, shipping, new_arrival or custom.
        discount_percentage (float): Required for discount deals, 0-100.
        min_purchase_amount (float): Minimum cart value the deal applies to.
        link (str): Where the call to action points.
        button_text (str): Call to action label.
        button_variant (ButtonVariant): default or outline.
        active (bool): Manual on/off switch.
        start_date (datetime): Window start (UTC).
        end_date (datetime): Window end (UTC), always after start_date.
        priority (int): Higher priorities are listed first.
    """

    __tablename__ = "flash_deals"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    type = Column(Enum(FlashDealType), nullable=False, default=FlashDealType.CUSTOM)
    discount_percentage = Column(Float, nullable=True)
    min_purchase_amount = Column(Float, nullable=False, default=0)
    link = Column(String, nullable=False, default="")
    button_text = Column(String(50), nullable=True)
    button_variant = Column(Enum(ButtonVariant), nullable=False, default=ButtonVariant.DEFAULT)
    active = Column(Boolean, nullable=False, default=True, index=True)
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False, index=True)
    priority = Column(Integer, nullable=False, default=0)


    def __repr__(self):
        return (
            f'<FlashDeal(id={self.id}, title={self.title}, type={self.type}, start_date={self.start_date},'
            f' end_date={self.end_date}, priority={self.priority})>'
        )
