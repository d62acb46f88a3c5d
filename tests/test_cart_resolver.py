"""Tests for cart line resolution against an in-memory cart and catalog"""
from decimal import Decimal
import uuid

import pytest

from storefront.core.exceptions import (
    InvalidArgumentException,
    InvalidQuantityException,
    LineNotFoundException,
    OutOfStockException,
    ProductNotFoundException,
)
from storefront.models import ProductStatus
from storefront.services.cart_resolver import CartLineResolver, locate_line
from storefront.services.variant_key import generate_cart_item_key
from tests.factories import FakeCatalog, catalog_entry, keyed_line, legacy_line, make_cart

PRODUCT_ID = uuid.uuid4()


@pytest.fixture
def resolver():
    return CartLineResolver()


@pytest.fixture
def catalog():
    return FakeCatalog(catalog_entry(PRODUCT_ID))


class TestApplyUpdate:

    async def test_sets_discount_price_and_total(self, resolver, catalog):
        cart = make_cart(keyed_line(PRODUCT_ID, {"color": "red"}))

        line = await resolver.apply_update(cart, PRODUCT_ID, {"color": "red"}, 3, catalog)

        assert line.quantity == 3
        assert line.price == Decimal("15.00")
        assert line.total_price == Decimal("45.00")

    async def test_uses_list_price_without_discount(self, resolver):
        catalog = FakeCatalog(catalog_entry(PRODUCT_ID, discount_price=None))
        cart = make_cart(keyed_line(PRODUCT_ID))

        line = await resolver.apply_update(cart, PRODUCT_ID, {}, 2, catalog)

        assert line.price == Decimal("20.00")
        assert line.total_price == Decimal("40.00")

    async def test_zero_discount_falls_back_to_list_price(self, resolver):
        catalog = FakeCatalog(catalog_entry(PRODUCT_ID, discount_price=Decimal("0")))
        cart = make_cart(keyed_line(PRODUCT_ID))

        line = await resolver.apply_update(cart, PRODUCT_ID, {}, 1, catalog)

        assert line.price == Decimal("20.00")

    async def test_is_idempotent(self, resolver, catalog):
        cart = make_cart(keyed_line(PRODUCT_ID, {"color": "red"}))

        await resolver.apply_update(cart, PRODUCT_ID, {"color": "red"}, 2, catalog)
        line = await resolver.apply_update(cart, PRODUCT_ID, {"color": "red"}, 2, catalog)

        assert line.quantity == 2
        assert line.total_price == Decimal("30.00")
        assert len(cart.items) == 1

    async def test_matches_regardless_of_attribute_order(self, resolver, catalog):
        target = keyed_line(PRODUCT_ID, {"color": "red", "size": "M"})
        cart = make_cart(keyed_line(PRODUCT_ID, {"color": "red"}), target)

        line = await resolver.apply_update(cart, PRODUCT_ID, {"size": "M", "color": "red"}, 4, catalog)

        assert line is target
        assert cart.items[0].quantity == 1

    async def test_only_touches_the_matching_variant(self, resolver, catalog):
        red = keyed_line(PRODUCT_ID, {"color": "red"}, position=0)
        blue = keyed_line(PRODUCT_ID, {"color": "blue"}, position=1)
        cart = make_cart(red, blue)

        await resolver.apply_update(cart, PRODUCT_ID, {"color": "blue"}, 5, catalog)

        assert red.quantity == 1
        assert blue.quantity == 5

    @pytest.mark.parametrize("quantity", [0, -1, None])
    async def test_rejects_non_positive_quantity(self, resolver, catalog, quantity):
        cart = make_cart(keyed_line(PRODUCT_ID))

        with pytest.raises(InvalidQuantityException) as exc_info:
            await resolver.apply_update(cart, PRODUCT_ID, {}, quantity, catalog)

        assert isinstance(exc_info.value, InvalidArgumentException)
        assert exc_info.value.status_code == 400

    async def test_unknown_product(self, resolver):
        cart = make_cart(keyed_line(PRODUCT_ID))

        with pytest.raises(ProductNotFoundException):
            await resolver.apply_update(cart, PRODUCT_ID, {}, 1, FakeCatalog())

    async def test_quantity_above_stock_leaves_cart_unmodified(self, resolver, catalog):
        line = keyed_line(PRODUCT_ID, {"color": "red"}, quantity=2)
        cart = make_cart(line)

        with pytest.raises(OutOfStockException) as exc_info:
            await resolver.apply_update(cart, PRODUCT_ID, {"color": "red"}, 6, catalog)

        assert exc_info.value.available == 5
        assert line.quantity == 2
        assert line.price == Decimal("20.00")
        assert line.total_price == Decimal("40.00")

    async def test_out_of_stock_status(self, resolver):
        catalog = FakeCatalog(
            catalog_entry(PRODUCT_ID, available_quantity=10, status=ProductStatus.OUT_OF_STOCK)
        )
        cart = make_cart(keyed_line(PRODUCT_ID))

        with pytest.raises(OutOfStockException):
            await resolver.apply_update(cart, PRODUCT_ID, {}, 1, catalog)

    async def test_missing_line(self, resolver, catalog):
        cart = make_cart(keyed_line(PRODUCT_ID, {"color": "red"}))

        with pytest.raises(LineNotFoundException):
            await resolver.apply_update(cart, PRODUCT_ID, {"color": "green"}, 1, catalog)


class TestLegacyLines:

    async def test_legacy_line_is_updated_and_backfilled(self, resolver, catalog):
        line = legacy_line(PRODUCT_ID, color="red", size="M")
        cart = make_cart(line)

        updated = await resolver.apply_update(cart, PRODUCT_ID, {"color": "red", "size": "M"}, 2, catalog)

        assert updated is line
        assert line.item_key == generate_cart_item_key(PRODUCT_ID, {"color": "red", "size": "M"})
        assert line.variants == {"color": "red", "size": "M"}
        assert line.quantity == 2

    async def test_backfilled_line_is_found_by_key_afterwards(self, resolver, catalog):
        line = legacy_line(PRODUCT_ID, color="red")
        cart = make_cart(line)

        await resolver.apply_update(cart, PRODUCT_ID, {"color": "red"}, 2, catalog)
        found, key = locate_line(cart.items, PRODUCT_ID, {"color": "red"})

        assert found is line
        assert found.item_key == key

    async def test_legacy_empty_fields_match_missing_selection(self, resolver, catalog):
        line = legacy_line(PRODUCT_ID, color=None, size="")
        cart = make_cart(line)

        await resolver.apply_update(cart, PRODUCT_ID, {"color": "", "size": None}, 1, catalog)

        assert line.item_key == str(PRODUCT_ID)

    async def test_existing_variants_are_kept(self, resolver, catalog):
        line = legacy_line(PRODUCT_ID, color="red")
        line.variants = {"color": "red", "finish": "matte"}
        cart = make_cart(line)

        await resolver.apply_update(cart, PRODUCT_ID, {"color": "red"}, 1, catalog)

        assert line.variants == {"color": "red", "finish": "matte"}

    async def test_canonical_key_wins_over_legacy_match(self, resolver, catalog):
        legacy = legacy_line(PRODUCT_ID, color="red", position=0)
        keyed = keyed_line(PRODUCT_ID, {"color": "red"}, position=1)
        cart = make_cart(legacy, keyed)

        updated = await resolver.apply_update(cart, PRODUCT_ID, {"color": "red"}, 3, catalog)

        assert updated is keyed
        assert legacy.item_key is None
        assert legacy.quantity == 1

    async def test_keyed_lines_are_never_matched_by_fields(self, resolver, catalog):
        wool = keyed_line(PRODUCT_ID, {"color": "red", "material": "wool"})
        cart = make_cart(wool)

        with pytest.raises(LineNotFoundException):
            await resolver.apply_update(cart, PRODUCT_ID, {"color": "red"}, 1, catalog)

    async def test_legacy_line_of_other_product_is_ignored(self, resolver, catalog):
        cart = make_cart(legacy_line(uuid.uuid4(), color="red"))

        with pytest.raises(LineNotFoundException):
            await resolver.apply_update(cart, PRODUCT_ID, {"color": "red"}, 1, catalog)

    async def test_untrimmed_stored_fields_still_match(self, resolver, catalog):
        line = legacy_line(PRODUCT_ID, color="red ", size=" M")
        cart = make_cart(line)

        updated = await resolver.apply_update(cart, PRODUCT_ID, {"color": "red ", "size": "M"}, 2, catalog)

        assert updated is line
        assert line.quantity == 2
        assert line.item_key == generate_cart_item_key(PRODUCT_ID, {"color": "red", "size": "M"})

    def test_untrimmed_stored_fields_can_be_removed(self, resolver):
        cart = make_cart(legacy_line(PRODUCT_ID, color="red "))

        resolver.remove_line(cart, PRODUCT_ID, {"color": "red"})

        assert cart.items == []


class TestRemoveLine:

    def test_removes_only_the_matching_line(self, resolver):
        red = keyed_line(PRODUCT_ID, {"color": "red"}, position=0)
        blue = keyed_line(PRODUCT_ID, {"color": "blue"}, position=1)
        cart = make_cart(red, blue)

        removed = resolver.remove_line(cart, PRODUCT_ID, {"color": "red"})

        assert removed is red
        assert cart.items == [blue]

    def test_removes_legacy_line(self, resolver):
        cart = make_cart(legacy_line(PRODUCT_ID, color="red", size="L"))

        resolver.remove_line(cart, PRODUCT_ID, {"size": "L", "color": "red"})

        assert cart.items == []

    def test_missing_line(self, resolver):
        cart = make_cart(keyed_line(PRODUCT_ID, {"color": "red"}))

        with pytest.raises(LineNotFoundException):
            resolver.remove_line(cart, PRODUCT_ID, {"color": "blue"})

        assert len(cart.items) == 1


class TestAddLine:

    async def test_creates_line_with_key_and_legacy_fields(self, resolver, catalog):
        cart = make_cart()

        line = await resolver.add_line(cart, PRODUCT_ID, {"size": " M ", "color": "red"}, 2, catalog)

        assert cart.items == [line]
        assert line.item_key == f"{PRODUCT_ID}|color:red|size:M"
        assert line.variants == {"color": "red", "size": "M"}
        assert (line.color, line.size) == ("red", "M")
        assert line.total_price == Decimal("30.00")

    async def test_adds_to_existing_line(self, resolver, catalog):
        line = keyed_line(PRODUCT_ID, {"color": "red"}, quantity=2)
        cart = make_cart(line)

        await resolver.add_line(cart, PRODUCT_ID, {"color": "red"}, 1, catalog)

        assert len(cart.items) == 1
        assert line.quantity == 3

    async def test_combined_quantity_is_checked_against_stock(self, resolver, catalog):
        line = keyed_line(PRODUCT_ID, {"color": "red"}, quantity=4)
        cart = make_cart(line)

        with pytest.raises(OutOfStockException):
            await resolver.add_line(cart, PRODUCT_ID, {"color": "red"}, 2, catalog)

        assert line.quantity == 4

    async def test_inactive_product_cannot_be_added(self, resolver):
        catalog = FakeCatalog(catalog_entry(PRODUCT_ID, active=False, status=ProductStatus.DRAFT))

        with pytest.raises(ProductNotFoundException):
            await resolver.add_line(make_cart(), PRODUCT_ID, {}, 1, catalog)

    async def test_new_lines_get_increasing_positions(self, resolver, catalog):
        cart = make_cart()

        first = await resolver.add_line(cart, PRODUCT_ID, {"color": "red"}, 1, catalog)
        second = await resolver.add_line(cart, PRODUCT_ID, {"color": "blue"}, 1, catalog)

        assert second.position > first.position


def test_cart_totals_follow_lines():
    cart = make_cart(
        keyed_line(PRODUCT_ID, {"color": "red"}, quantity=2, price=Decimal("15.00")),
        keyed_line(PRODUCT_ID, {"color": "blue"}, quantity=1, price=Decimal("20.00")),
    )

    assert cart.total_items == 3
    assert cart.total_price == Decimal("50.00")
