"""Test doubles and builders shared across test modules"""
from decimal import Decimal
import uuid

from storefront.models import Cart, CartItem, determine_product_status
from storefront.services.catalog_service import CatalogEntry
from storefront.services.variant_key import generate_cart_item_key, normalize_variants


class FakeCatalog:
    """In-memory catalog lookup keyed by product id"""

    def __init__(self, *entries: CatalogEntry):
        self.entries = {entry.product_id: entry for entry in entries}

    async def get(self, product_id):
        return self.entries.get(str(product_id))


def catalog_entry(product_id, **overrides) -> CatalogEntry:
    available = overrides.get("available_quantity", 5)
    data = {
        "product_id": str(product_id),
        "name": "Linen Shirt",
        "price": Decimal("20.00"),
        "discount_price": Decimal("15.00"),
        "available_quantity": available,
        "status": determine_product_status(available, True),
        "active": True,
    }
    data.update(overrides)
    return CatalogEntry(**data)


def keyed_line(product_id, variants=None, quantity=1, price=Decimal("20.00"), position=0) -> CartItem:
    normalized = normalize_variants(variants)
    return CartItem(
        item_key=generate_cart_item_key(product_id, normalized),
        product_id=product_id,
        variants=normalized,
        color=normalized.get("color", ""),
        size=normalized.get("size", ""),
        quantity=quantity,
        price=price,
        total_price=price * quantity,
        position=position,
    )


def legacy_line(product_id, color="", size="", quantity=1, price=Decimal("20.00"), position=0) -> CartItem:
    """A line as stored before canonical keys existed"""
    return CartItem(
        item_key=None,
        product_id=product_id,
        variants=None,
        color=color,
        size=size,
        quantity=quantity,
        price=price,
        total_price=price * quantity,
        position=position,
    )


def make_cart(*items: CartItem) -> Cart:
    cart = Cart(user_id=uuid.uuid4(), items=list(items))
    cart.recalculate_totals()
    return cart
