"""
Shopping cart model
One cart per user; lines are keyed by product plus variant selection
"""

from decimal import Decimal

from sqlalchemy import Column, String, Integer, Numeric, JSON, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel

class Cart(Base, TimestampedModel, UUIDModel):
    """A user's shopping cart"""

    __tablename__ = "carts"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, unique=True)

    # Denormalized summary, kept current by recalculate_totals()
    total_items = Column(Integer, nullable=False, default=0)
    total_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    # Optimistic concurrency token
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    user = relationship("User", back_populates="cart")
    items = relationship(
        "CartItem",
        back_populates="cart",
        order_by="CartItem.position",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    def recalculate_totals(self):
        """Recompute item count and price total from the lines"""
        self.total_items = sum(item.quantity for item in self.items)
        self.total_price = sum(
            (Decimal(item.total_price) for item in self.items),
            Decimal("0.00"),
        )

    def next_position(self) -> int:
        return max((item.position for item in self.items), default=-1) + 1

class CartItem(Base, TimestampedModel, UUIDModel):
    """Shopping cart line"""

    __tablename__ = "cart_items"

    cart_id = Column(UUID(as_uuid=True), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # Canonical identity; NULL on lines written before keys existed
    item_key = Column(String(512), nullable=True)

    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)
    variants = Column(JSON, nullable=True)

    # Legacy variant fields, still written for older readers
    color = Column(String(50), nullable=True)
    size = Column(String(20), nullable=True)

    # Quantity and price snapshot
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    # Relationships
    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("cart_id", "item_key", name="uq_cart_item_key"),
        CheckConstraint("quantity > 0", name="check_positive_cart_quantity"),
        Index("idx_cart_items_cart_product", "cart_id", "product_id"),
    )

    def set_quantity(self, quantity: int, unit_price):
        """Replace quantity and refresh the price snapshot"""
        self.quantity = quantity
        self.price = unit_price
        self.total_price = unit_price * quantity
