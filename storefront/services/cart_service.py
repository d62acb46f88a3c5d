"""
Cart service layer
Loads and persists carts around the line resolver
"""

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from storefront.core.exceptions import CartNotFoundException, ConflictException
from storefront.models import Cart, CartItem, Product
from storefront.services.cart_resolver import CartLineResolver, CatalogLookup

logger = logging.getLogger(__name__)

class CartRepository:
    """Whole-cart persistence scoped by user"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _query(self, user_id: uuid.UUID):
        return (
            select(Cart)
            .options(selectinload(Cart.items).selectinload(CartItem.product))
            .where(Cart.user_id == user_id)
        )

    async def find_by_user(self, user_id: uuid.UUID) -> Optional[Cart]:
        result = await self.db.execute(
            self._query(user_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_user_for_update(self, user_id: uuid.UUID) -> Optional[Cart]:
        """Load the cart and hold its row lock until the transaction ends"""
        result = await self.db.execute(
            self._query(user_id).with_for_update(of=Cart).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def create_for_user(self, user_id: uuid.UUID) -> Cart:
        """Stage an empty cart; a concurrent creation surfaces on commit"""
        cart = Cart(user_id=user_id, items=[], total_items=0, total_price=Decimal("0.00"))
        self.db.add(cart)
        return cart

    async def save(self, cart: Cart) -> None:
        """Recompute totals and commit the cart with its lines"""
        cart.recalculate_totals()
        self.db.add(cart)
        await self.db.commit()

class CartService:
    """Shopping cart service"""

    def __init__(self, db: AsyncSession, catalog: CatalogLookup):
        self.db = db
        self.catalog = catalog
        self.carts = CartRepository(db)
        self.resolver = CartLineResolver()

    async def _commit(self, cart: Cart) -> None:
        try:
            await self.carts.save(cart)
        except (StaleDataError, IntegrityError) as e:
            await self.db.rollback()
            logger.warning(f"Concurrent cart modification for user {cart.user_id}: {e}")
            raise ConflictException("Cart was modified by another request, please retry")

    async def _load_for_update(self, user_id: uuid.UUID, create: bool = False) -> Cart:
        cart = await self.carts.find_by_user_for_update(user_id)
        if cart is None:
            if not create:
                raise CartNotFoundException()
            cart = self.carts.create_for_user(user_id)
        return cart

    async def get_cart(self, user_id: uuid.UUID) -> Dict[str, Any]:
        """
        Get the user's cart, creating an empty one on first access.

        Lines whose product was deleted or unpublished are dropped.
        """
        cart = await self.carts.find_by_user_for_update(user_id)
        if cart is None:
            cart = self.carts.create_for_user(user_id)
            await self._commit(cart)
        else:
            stale = [item for item in cart.items if item.product is None or not item.product.active]
            if stale:
                for item in stale:
                    cart.items.remove(item)
                logger.info(f"Dropped {len(stale)} unavailable lines from cart of user {user_id}")
                await self._commit(cart)
            else:
                await self.db.commit()

        return await self.get_cart_view(user_id)

    async def add_item(
        self,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        variants: Optional[Mapping[str, Optional[str]]],
        quantity: int,
    ) -> Dict[str, Any]:
        """Add quantity of a product selection, creating the cart if needed"""
        try:
            cart = await self._load_for_update(user_id, create=True)
            await self.resolver.add_line(cart, product_id, variants, quantity, self.catalog)
        except Exception:
            await self.db.rollback()
            raise
        await self._commit(cart)
        return await self.get_cart_view(user_id)

    async def update_item(
        self,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        variants: Optional[Mapping[str, Optional[str]]],
        quantity: int,
    ) -> Dict[str, Any]:
        """
        Set the quantity of an existing line

        Raises:
            CartNotFoundException: If the user has no cart
            plus everything CartLineResolver.apply_update raises
        """
        try:
            cart = await self._load_for_update(user_id)
            await self.resolver.apply_update(cart, product_id, variants, quantity, self.catalog)
        except Exception:
            await self.db.rollback()
            raise
        await self._commit(cart)
        return await self.get_cart_view(user_id)

    async def remove_item(
        self,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        variants: Optional[Mapping[str, Optional[str]]],
    ) -> Dict[str, Any]:
        """Remove a line; the cart stays even when it becomes empty"""
        try:
            cart = await self._load_for_update(user_id)
            self.resolver.remove_line(cart, product_id, variants)
        except Exception:
            await self.db.rollback()
            raise
        await self._commit(cart)
        return await self.get_cart_view(user_id)

    async def clear_cart(self, user_id: uuid.UUID) -> Dict[str, Any]:
        """Remove every line, creating an empty cart if none exists"""
        cart = await self._load_for_update(user_id, create=True)
        cart.items.clear()
        await self._commit(cart)
        return await self.get_cart_view(user_id)

    async def get_cart_view(self, user_id: uuid.UUID) -> Dict[str, Any]:
        """Cart with current product details joined into each line"""
        cart = await self.carts.find_by_user(user_id)
        if cart is None:
            raise CartNotFoundException()
        return build_cart_view(cart)

def build_cart_view(cart: Cart) -> Dict[str, Any]:
    items: List[Dict[str, Any]] = []
    for item in cart.items:
        product: Optional[Product] = item.product
        items.append({
            "item_key": item.item_key,
            "product_id": item.product_id,
            "variants": item.variants or {},
            "color": item.color or "",
            "size": item.size or "",
            "quantity": item.quantity,
            "price": item.price,
            "total_price": item.total_price,
            "product": None if product is None else {
                "id": product.id,
                "name": product.name,
                "slug": product.slug,
                "image": product.image,
                "status": product.status,
                "price": product.price,
                "discount_price": product.discount_price,
                "quantity": product.quantity,
            },
            "current_price": None if product is None else product.final_price,
            "in_stock": product is not None and product.quantity >= item.quantity,
        })

    return {
        "id": cart.id,
        "user_id": cart.user_id,
        "items": items,
        "total_items": cart.total_items,
        "total_price": cart.total_price,
        "updated_at": cart.updated_at,
    }
