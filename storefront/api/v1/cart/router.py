"""Cart router: line items keyed by product and variant selection"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from storefront.api.v1.auth.dependencies import get_current_user
from storefront.core.cache import cache
from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.middleware.rate_limit import mutation_limit
from storefront.models import User
from storefront.schemas.cart import CartItemCreate, CartItemUpdate, CartResponse
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.utils.validators import parse_resource_id

router = APIRouter()

def get_cart_service(db: AsyncSession = Depends(get_db)) -> CartService:
    catalog = CatalogService(db, cache=cache, ttl=settings.CATALOG_CACHE_TTL)
    return CartService(db, catalog)

@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Get the current user's cart"""
    return await service.get_cart(current_user.id)

@router.post("", response_model=CartResponse)
@mutation_limit
async def add_to_cart(
    request: Request,
    item_data: CartItemCreate,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Add item to cart, merging with an existing line for the same selection"""
    return await service.add_item(
        user_id=current_user.id,
        product_id=item_data.product_id,
        variants=item_data.selection(),
        quantity=item_data.quantity
    )

@router.delete("", response_model=CartResponse)
@mutation_limit
async def clear_cart(
    request: Request,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Clear entire cart"""
    return await service.clear_cart(current_user.id)

@router.put("/{product_id}", response_model=CartResponse)
@mutation_limit
async def update_cart_item(
    request: Request,
    product_id: str,
    update_data: CartItemUpdate,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Set the quantity of a cart line"""
    return await service.update_item(
        user_id=current_user.id,
        product_id=parse_resource_id(product_id, "product"),
        variants=update_data.selection(),
        quantity=update_data.quantity
    )

@router.delete("/{product_id}", response_model=CartResponse)
@mutation_limit
async def remove_from_cart(
    request: Request,
    product_id: str,
    color: Optional[str] = Query(None, max_length=50),
    size: Optional[str] = Query(None, max_length=20),
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Remove a line from the cart"""
    variants = {"color": color, "size": size}
    # Any other query parameter is treated as a variant attribute
    for name, value in request.query_params.items():
        if name not in variants:
            variants[name] = value

    return await service.remove_item(
        user_id=current_user.id,
        product_id=parse_resource_id(product_id, "product"),
        variants=variants
    )
