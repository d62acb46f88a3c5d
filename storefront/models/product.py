"""Catalog product model"""

from sqlalchemy import Column, String, Text, Numeric, Integer, Boolean, JSON, Index, CheckConstraint

from .base import Base, TimestampedModel, UUIDModel

class ProductStatus:
    IN_STOCK = "in stock"
    LOW_STOCK = "low stock"
    OUT_OF_STOCK = "out of stock"
    DRAFT = "draft"

LOW_STOCK_THRESHOLD = 5

def determine_product_status(quantity: int, active: bool) -> str:
    """Derive catalog status from stock level and publication state"""
    if not active:
        return ProductStatus.DRAFT
    if quantity <= 0:
        return ProductStatus.OUT_OF_STOCK
    if quantity <= LOW_STOCK_THRESHOLD:
        return ProductStatus.LOW_STOCK
    return ProductStatus.IN_STOCK

class Product(Base, TimestampedModel, UUIDModel):
    """Product model with stock and variant options"""

    __tablename__ = "products"

    # Basic info
    name = Column(String(100), nullable=False, index=True)
    slug = Column(String(255), unique=True, nullable=True, index=True)
    description = Column(Text, nullable=False, default="")

    # Pricing
    price = Column(Numeric(10, 2), nullable=False)
    discount_price = Column(Numeric(10, 2), nullable=True)

    # Inventory
    quantity = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default=ProductStatus.IN_STOCK, nullable=False, index=True)
    active = Column(Boolean, default=True, nullable=False)

    # Media
    image = Column(String(500), nullable=True)

    # Variant options offered by the product
    colors = Column(JSON, default=list)
    sizes = Column(JSON, default=list)

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_non_negative_price"),
        CheckConstraint("quantity >= 0", name="check_non_negative_quantity"),
        Index("idx_products_active_status", "active", "status"),
    )

    @property
    def final_price(self):
        """Discount price when set, list price otherwise"""
        return self.discount_price or self.price

    def refresh_status(self):
        """Recompute status after a stock or publication change"""
        self.status = determine_product_status(self.quantity, self.active)
