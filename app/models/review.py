from sqlalchemy import Column, Integer, Text, ForeignKey, Boolean, Enum, UniqueConstraint
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..enums import ReviewStatus
from .base import TimeStampMixin


class Review(Base, TimeStampMixin):
    __tablename__ = "reviews"
    # one review per user per product
    __table_args__ = (UniqueConstraint("product_id", "user_id", name="uq_reviews_product_user"),)

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5 star rating
    comment = Column(Text, nullable=True)
    is_verified_purchase = Column(Boolean, default=False)  # True if user actually bought the product
    status = Column(Enum(ReviewStatus), default=ReviewStatus.APPROVED, nullable=False, index=True)

    # Relationships
    product = relationship("Product", back_populates="reviews")
    user = relationship("User", back_populates="reviews", lazy="selectin")
