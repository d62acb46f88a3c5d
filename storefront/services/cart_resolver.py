"""
Cart line resolution

Finds the cart line a (product, variant selection) request refers to and
reprices it from live catalog data. Lines are matched on their canonical key
first; lines stored before keys existed are matched on product, color and size
and get their key written back the first time they are touched.
"""

from typing import Iterable, Mapping, Optional, Protocol, Tuple
import logging
import uuid

from storefront.core.exceptions import (
    InvalidQuantityException,
    LineNotFoundException,
    OutOfStockException,
    ProductNotFoundException,
)
from storefront.models import CartItem, ProductStatus
from storefront.services.catalog_service import CatalogEntry
from storefront.services.variant_key import generate_cart_item_key, normalize_variants

logger = logging.getLogger(__name__)

class CatalogLookup(Protocol):
    async def get(self, product_id) -> Optional[CatalogEntry]:
        ...

def _matches_legacy(item: CartItem, product_id: str, variants: Mapping[str, str]) -> bool:
    return (
        not item.item_key
        and str(item.product_id) == product_id
        and (item.color or "").strip() == variants.get("color", "")
        and (item.size or "").strip() == variants.get("size", "")
    )

def locate_line(
    items: Iterable[CartItem],
    product_id,
    variants: Mapping[str, str],
) -> Tuple[Optional[CartItem], str]:
    """
    Find the line for a product and normalized selection.

    Returns the matching line (or None) together with the canonical key.
    """
    key = generate_cart_item_key(product_id, variants)
    items = list(items)

    for item in items:
        if item.item_key == key:
            return item, key

    product_id = str(product_id)
    for item in items:
        if _matches_legacy(item, product_id, variants):
            return item, key

    return None, key

def _backfill_identity(line: CartItem, key: str, variants: Mapping[str, str]) -> None:
    if line.item_key:
        return
    line.item_key = key
    if not line.variants:
        line.variants = dict(variants)
    logger.info(f"Backfilled cart line key {key}")

class CartLineResolver:
    """Add, update and remove cart lines by product and variant selection"""

    @staticmethod
    async def _require_product(catalog: CatalogLookup, product_id, quantity: int) -> CatalogEntry:
        entry = await catalog.get(product_id)
        if entry is None:
            raise ProductNotFoundException()
        if entry.is_out_of_stock or entry.available_quantity < quantity:
            raise OutOfStockException(entry.name, entry.available_quantity)
        return entry

    async def apply_update(
        self,
        cart,
        product_id,
        variants: Optional[Mapping[str, Optional[str]]],
        quantity: int,
        catalog: CatalogLookup,
    ) -> CartItem:
        """
        Set the quantity of an existing line and reprice it.

        Setting the same quantity twice leaves the line unchanged. Nothing is
        modified when validation or lookup fails.

        Raises:
            InvalidQuantityException: If quantity is below 1
            ProductNotFoundException: If the product is not in the catalog
            OutOfStockException: If stock cannot cover the quantity
            LineNotFoundException: If the cart has no matching line
        """
        if quantity is None or quantity < 1:
            raise InvalidQuantityException()

        entry = await self._require_product(catalog, product_id, quantity)

        normalized = normalize_variants(variants)
        line, key = locate_line(cart.items, product_id, normalized)
        if line is None:
            raise LineNotFoundException()

        _backfill_identity(line, key, normalized)
        line.set_quantity(quantity, entry.unit_price)
        return line

    async def add_line(
        self,
        cart,
        product_id,
        variants: Optional[Mapping[str, Optional[str]]],
        quantity: int,
        catalog: CatalogLookup,
    ) -> CartItem:
        """
        Add quantity to a line, creating it when the selection is new.

        Raises:
            InvalidQuantityException: If quantity is below 1
            ProductNotFoundException: If the product is missing or unpublished
            OutOfStockException: If stock cannot cover the resulting quantity
        """
        if quantity is None or quantity < 1:
            raise InvalidQuantityException()

        entry = await catalog.get(product_id)
        if entry is None or not entry.active or entry.status == ProductStatus.DRAFT:
            raise ProductNotFoundException("Product not found or unavailable")

        normalized = normalize_variants(variants)
        line, key = locate_line(cart.items, product_id, normalized)

        total_quantity = quantity + (line.quantity if line is not None else 0)
        if entry.is_out_of_stock or entry.available_quantity < total_quantity:
            raise OutOfStockException(entry.name, entry.available_quantity)

        if line is not None:
            _backfill_identity(line, key, normalized)
            line.set_quantity(total_quantity, entry.unit_price)
            return line

        line = CartItem(
            item_key=key,
            product_id=uuid.UUID(str(product_id)),
            variants=normalized,
            color=normalized.get("color", ""),
            size=normalized.get("size", ""),
            position=cart.next_position(),
        )
        line.set_quantity(quantity, entry.unit_price)
        cart.items.append(line)
        return line

    def remove_line(
        self,
        cart,
        product_id,
        variants: Optional[Mapping[str, Optional[str]]],
    ) -> CartItem:
        """
        Remove the line matching a product and selection.

        Other lines and the cart itself are left in place, even if the cart
        becomes empty.

        Raises:
            LineNotFoundException: If the cart has no matching line
        """
        line, _ = locate_line(cart.items, product_id, normalize_variants(variants))
        if line is None:
            raise LineNotFoundException()

        cart.items.remove(line)
        return line
