"""Tests for catalog lookups and their cache"""
from decimal import Decimal
import uuid

import pytest

from storefront.core.cache import RedisCache
from storefront.models import Product, ProductStatus
from storefront.services.catalog_service import CatalogEntry, CatalogService


@pytest.fixture
def memory_cache():
    return RedisCache(url=None)


class TestCatalogService:

    async def test_returns_entry_for_product(self, session_factory, make_product):
        product = await make_product(quantity=3)

        async with session_factory() as session:
            entry = await CatalogService(session).get(product.id)

        assert entry.product_id == str(product.id)
        assert entry.unit_price == Decimal("15.00")
        assert entry.available_quantity == 3
        assert entry.status == ProductStatus.LOW_STOCK

    async def test_unknown_or_malformed_id(self, session_factory):
        async with session_factory() as session:
            catalog = CatalogService(session)
            assert await catalog.get(uuid.uuid4()) is None
            assert await catalog.get("not-a-uuid") is None

    async def test_no_caching_without_ttl(self, session_factory, make_product, memory_cache):
        product = await make_product()

        async with session_factory() as session:
            await CatalogService(session, cache=memory_cache, ttl=0).get(product.id)

        assert await memory_cache.get(CatalogService.cache_key(product.id)) is None

    async def test_cached_entry_survives_until_invalidated(
        self, session_factory, make_product, memory_cache
    ):
        product = await make_product()

        async with session_factory() as session:
            catalog = CatalogService(session, cache=memory_cache, ttl=60)
            await catalog.get(product.id)

            stored = await session.get(Product, product.id)
            stored.discount_price = Decimal("12.00")
            await session.commit()

            assert (await catalog.get(product.id)).unit_price == Decimal("15.00")

            await catalog.invalidate(product.id)
            assert (await catalog.get(product.id)).unit_price == Decimal("12.00")

    async def test_invalidate_all(self, session_factory, make_product, memory_cache):
        first = await make_product()
        second = await make_product()

        async with session_factory() as session:
            catalog = CatalogService(session, cache=memory_cache, ttl=60)
            await catalog.get(first.id)
            await catalog.get(second.id)

            assert await catalog.invalidate_all() == 2

        assert await memory_cache.get(CatalogService.cache_key(first.id)) is None


def test_cache_payload_round_trip():
    entry = CatalogEntry(
        product_id=str(uuid.uuid4()),
        name="Linen Shirt",
        price=Decimal("20.00"),
        available_quantity=4,
        status=ProductStatus.LOW_STOCK,
        discount_price=None,
    )

    assert CatalogEntry.from_cache(entry.to_cache()) == entry
