"""Address router for the current user's shipping and billing addresses"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from storefront.api.v1.auth.dependencies import get_current_user
from storefront.core.database import get_db
from storefront.middleware.rate_limit import mutation_limit
from storefront.models import User
from storefront.schemas.address import AddressCreate, AddressUpdate, AddressResponse
from storefront.services.address_service import AddressService
from storefront.utils.validators import parse_resource_id

router = APIRouter()

def get_address_service(db: AsyncSession = Depends(get_db)) -> AddressService:
    return AddressService(db)

@router.get("", response_model=List[AddressResponse])
async def list_addresses(
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    """Get current user addresses"""
    return await service.list_addresses(current_user.id)

@router.post("", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
@mutation_limit
async def create_address(
    request: Request,
    address_data: AddressCreate,
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    """Create an address; the first one is always the default"""
    return await service.create_address(current_user.id, address_data.model_dump())

@router.get("/{address_id}", response_model=AddressResponse)
async def get_address(
    address_id: str,
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    """Get address by ID"""
    return await service.get_address(current_user.id, parse_resource_id(address_id, "address"))

@router.put("/{address_id}", response_model=AddressResponse)
@mutation_limit
async def update_address(
    request: Request,
    address_id: str,
    update_data: AddressUpdate,
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    """Update address"""
    return await service.update_address(
        current_user.id,
        parse_resource_id(address_id, "address"),
        update_data.changes()
    )

@router.delete("/{address_id}")
@mutation_limit
async def delete_address(
    request: Request,
    address_id: str,
    current_user: User = Depends(get_current_user),
    service: AddressService = Depends(get_address_service)
):
    """Delete address, promoting another one if it was the default"""
    await service.delete_address(current_user.id, parse_resource_id(address_id, "address"))
    return {"message": "Address deleted successfully"}
