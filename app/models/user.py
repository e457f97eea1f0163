from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, JSON, String
from sqlalchemy.orm import relationship

from ..models.base import TimeStampMixin, Base
from ..enums import UserRole


class User(Base, TimeStampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    avatar = Column(String, nullable=True)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    is_email_verified = Column(Boolean, default=False)
    email_verification_token = Column(String, nullable=True, index=True)
    email_verification_expires = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    refresh_tokens = Column(JSON, default=list)  # sha256 digests of issued refresh tokens
    reset_password_token = Column(String, nullable=True, index=True)
    reset_password_expires = Column(DateTime, nullable=True)

    # Relationships
    orders = relationship("Order", back_populates="user")
    cart = relationship("Cart", back_populates="user", uselist=False)
    reviews = relationship("Review", back_populates="user")
    addresses = relationship("Address", back_populates="user", order_by="Address.id", passive_deletes=True)


    def __repr__(self):
        return f'<User(id={self.id}, email={self.email}, role={self.role})>'
