"""
Cart schemas for request/response validation
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from decimal import Decimal
import uuid

from storefront.core.config import settings

class VariantSelection(BaseModel):
    """Variant attributes chosen by the shopper"""
    color: Optional[str] = Field(None, max_length=50)
    size: Optional[str] = Field(None, max_length=20)
    variants: Dict[str, Optional[str]] = Field(default_factory=dict)

    def selection(self) -> Dict[str, Optional[str]]:
        """Merge the named attributes into the free-form mapping"""
        merged = dict(self.variants)
        if self.color is not None:
            merged["color"] = self.color
        if self.size is not None:
            merged["size"] = self.size
        return merged

class CartItemCreate(VariantSelection):
    """Schema for adding item to cart"""
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1, le=settings.CART_MAX_ITEM_QUANTITY)

class CartItemUpdate(VariantSelection):
    """Schema for setting a cart line's quantity"""
    # Range is checked by the resolver so the error carries its own code
    quantity: int

class CartProductSummary(BaseModel):
    id: uuid.UUID
    name: str
    slug: Optional[str] = None
    image: Optional[str] = None
    status: str
    price: Decimal
    discount_price: Optional[Decimal] = None
    quantity: int

class CartItemResponse(BaseModel):
    """Schema for cart line response"""
    item_key: Optional[str]
    product_id: uuid.UUID
    variants: Dict[str, str]
    color: str
    size: str
    quantity: int
    price: Decimal
    total_price: Decimal

    # Product details
    product: Optional[CartProductSummary] = None
    current_price: Optional[Decimal] = None
    in_stock: bool

class CartResponse(BaseModel):
    """Schema for complete cart response"""
    id: uuid.UUID
    user_id: uuid.UUID
    items: List[CartItemResponse]
    total_items: int
    total_price: Decimal
    updated_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "1c7a4b0e-5f5e-4c1d-9a59-0d7f4b1a2c3d",
                "user_id": "8a1f2b3c-4d5e-6f70-8192-a3b4c5d6e7f8",
                "items": [],
                "total_items": 0,
                "total_price": "0.00",
            }
        }
