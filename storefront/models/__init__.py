"""Models package initialization"""

from .base import Base
from .user import User
from .product import Product, ProductStatus, determine_product_status
from .cart import Cart, CartItem
from .address import Address

# Export all models
__all__ = [
    "Base",
    "User",
    "Product",
    "ProductStatus",
    "determine_product_status",
    "Cart",
    "CartItem",
    "Address",
]
