"""
User model
Accounts are provisioned by the identity service; this service only reads them
"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel

class User(Base, TimestampedModel, UUIDModel):
    """Storefront customer or administrator"""

    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)

    # Status fields
    is_active = Column(Boolean, default=True, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)

    # Relationships
    cart = relationship("Cart", back_populates="user", uselist=False)
    addresses = relationship("Address", back_populates="user")
