"""API v1 routes aggregation"""

from fastapi import APIRouter

from .cart.router import router as cart_router
from .addresses.router import router as addresses_router

# Create v1 router
api_router = APIRouter()

# Include all routers
api_router.include_router(cart_router, prefix="/cart", tags=["Cart"])
api_router.include_router(addresses_router, prefix="/addresses", tags=["Addresses"])
