from sqlalchemy import Column, Integer, ForeignKey, Float
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin

class Cart(Base, TimeStampMixin):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    total = Column(Float, default=0.0, nullable=False)

    # Relationships
    user = relationship("User", back_populates="cart")
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.id",
    )


    def recalculate_total(self) -> float:
        self.total = round(sum(item.price * item.quantity for item in self.items), 2)
        return self.total
