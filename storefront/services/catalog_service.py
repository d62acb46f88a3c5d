"""
Catalog lookups used when pricing cart lines
"""

from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Optional
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.cache import RedisCache
from storefront.models import Product, ProductStatus

logger = logging.getLogger(__name__)

CACHE_PREFIX = "catalog:product"

@dataclass(frozen=True)
class CatalogEntry:
    """Read-only snapshot of the fields cart pricing needs"""
    product_id: str
    name: str
    price: Decimal
    available_quantity: int
    status: str
    active: bool = True
    discount_price: Optional[Decimal] = None

    @property
    def unit_price(self) -> Decimal:
        """Discount price when set, list price otherwise"""
        return self.discount_price or self.price

    @property
    def is_out_of_stock(self) -> bool:
        return self.status == ProductStatus.OUT_OF_STOCK

    def to_cache(self) -> dict:
        data = asdict(self)
        data["price"] = str(self.price)
        data["discount_price"] = str(self.discount_price) if self.discount_price is not None else None
        return data

    @classmethod
    def from_cache(cls, data: dict) -> "CatalogEntry":
        discount = data.get("discount_price")
        return cls(
            product_id=data["product_id"],
            name=data["name"],
            price=Decimal(data["price"]),
            available_quantity=data["available_quantity"],
            status=data["status"],
            active=data.get("active", True),
            discount_price=Decimal(discount) if discount is not None else None,
        )

    @classmethod
    def from_product(cls, product: Product) -> "CatalogEntry":
        return cls(
            product_id=str(product.id),
            name=product.name,
            price=Decimal(product.price),
            available_quantity=product.quantity,
            status=product.status,
            active=product.active,
            discount_price=Decimal(product.discount_price) if product.discount_price is not None else None,
        )

class CatalogService:
    """
    Product lookup by id.

    When a cache is injected, entries live for ``ttl`` seconds. Whoever changes
    a product's price or stock must call ``invalidate`` for that product.
    """

    def __init__(self, db: AsyncSession, cache: Optional[RedisCache] = None, ttl: int = 0):
        self.db = db
        self.cache = cache if ttl > 0 else None
        self.ttl = ttl

    @staticmethod
    def cache_key(product_id) -> str:
        return f"{CACHE_PREFIX}:{product_id}"

    async def get(self, product_id) -> Optional[CatalogEntry]:
        """Return the catalog entry for a product, or None if it does not exist"""
        try:
            product_uuid = uuid.UUID(str(product_id))
        except ValueError:
            return None

        if self.cache:
            cached = await self.cache.get(self.cache_key(product_uuid))
            if cached is not None:
                return CatalogEntry.from_cache(cached)

        result = await self.db.execute(select(Product).where(Product.id == product_uuid))
        product = result.scalar_one_or_none()
        if product is None:
            return None

        entry = CatalogEntry.from_product(product)
        if self.cache:
            await self.cache.set(self.cache_key(product_uuid), entry.to_cache(), self.ttl)
        return entry

    async def invalidate(self, product_id) -> None:
        """Drop a cached entry after the product changed"""
        if self.cache:
            await self.cache.delete(self.cache_key(product_id))
            logger.info(f"Invalidated catalog cache for product {product_id}")

    async def invalidate_all(self) -> int:
        """Drop every cached catalog entry, e.g. after a bulk price import"""
        if not self.cache:
            return 0
        removed = await self.cache.delete_pattern(f"{CACHE_PREFIX}:*")
        logger.info(f"Invalidated {removed} catalog cache entries")
        return removed
