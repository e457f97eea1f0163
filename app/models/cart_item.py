from sqlalchemy import Column, Integer, ForeignKey, Float, UniqueConstraint
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin

class CartItem(Base, TimeStampMixin):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),)

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    price = Column(Float, nullable=False)  # unit price when the item was added

    # Relationships
    cart = relationship("Cart", back_populates="items")
    product = relationship("Product", lazy="selectin")


    def __repr__(self):
        return f'<CartItem(cart_id={self.cart_id}, product_id={self.product_id}, quantity={self.quantity})>'
