"""
Address model for shipping and billing
"""

from sqlalchemy import Column, String, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel

class Address(Base, TimestampedModel, UUIDModel):
    """User addresses for shipping/billing"""

    __tablename__ = "addresses"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Recipient
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)

    # Location
    address_line1 = Column(String(500), nullable=False)
    address_line2 = Column(String(500), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    postal_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False)

    # Flags
    is_default = Column(Boolean, default=False, nullable=False)
    type = Column(String(10), default="both", nullable=False)

    # Relationships
    user = relationship("User", back_populates="addresses")

    __table_args__ = (
        Index("idx_addresses_user_default", "user_id", "is_default"),
        Index("idx_addresses_user_created", "user_id", "created_at"),
    )
