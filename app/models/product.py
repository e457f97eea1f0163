from sqlalchemy import Column, Integer, String, Text, Boolean, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin



class Product(Base, TimeStampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    sku = Column(String, nullable=True, unique=True)
    price = Column(Float, nullable=False)
    compare_at_price = Column(Float, nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    images = Column(JSON, default=list)  # list of image URLs, first one is the cover
    tags = Column(JSON, default=list)
    specifications = Column(JSON, nullable=True)  # free-form key-value pairs
    weight = Column(Float, nullable=True)
    dimensions = Column(JSON, nullable=True)  # length, width, height and unit
    is_active = Column(Boolean, default=True, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    average_rating = Column(Float, default=0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)
    sales_count = Column(Integer, default=0, nullable=False)

    # Relationships
    category = relationship("Category", back_populates="products")
    order_items = relationship("OrderItem", back_populates="product", passive_deletes="all")
    reviews = relationship("Review", back_populates="product", cascade="all, delete-orphan")


    @property
    def image(self):
        """Cover image: the first entry of ``images``."""
        return self.images[0] if self.images else None


    def __repr__(self):
        return f"<Product(id={self.id}, slug={self.slug}, category_id={self.category_id}, stock={self.stock})>"
