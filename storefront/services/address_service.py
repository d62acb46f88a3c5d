"""
Address service layer
Handles shipping/billing address CRUD for the owning user
"""

from typing import Any, Dict, List
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import (
    AddressNotFoundException,
    ForbiddenException,
    NotFoundException,
)
from storefront.models import Address
from storefront.services.address_defaults import AddressRepository, DefaultAddressManager

logger = logging.getLogger(__name__)

class AddressService:
    """Address service; every mutation runs under the owner's lock"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.addresses = AddressRepository(db)
        self.defaults = DefaultAddressManager(self.addresses)

    async def list_addresses(self, user_id: uuid.UUID) -> List[Address]:
        return await self.addresses.find_by_user(user_id)

    async def _get_owned(self, user_id: uuid.UUID, address_id: uuid.UUID, action: str) -> Address:
        address = await self.addresses.get(address_id)
        if address is None:
            raise AddressNotFoundException()
        if address.user_id != user_id:
            raise ForbiddenException(f"Not authorized to {action} this address")
        return address

    async def _lock(self, user_id: uuid.UUID) -> None:
        if not await self.addresses.lock_user(user_id):
            raise NotFoundException("User not found", error_code="USER_NOT_FOUND")

    async def get_address(self, user_id: uuid.UUID, address_id: uuid.UUID) -> Address:
        return await self._get_owned(user_id, address_id, "view")

    async def create_address(self, user_id: uuid.UUID, data: Dict[str, Any]) -> Address:
        """
        Create an address for the user

        The first address becomes the default regardless of ``is_default``.
        """
        try:
            await self._lock(user_id)
            address = Address(**data)
            await self.defaults.on_create(user_id, address)
            await self.defaults.verify(user_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Created address {address.id} for user {user_id}")
        return address

    async def update_address(
        self,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
        changes: Dict[str, Any],
    ) -> Address:
        """Update an address; making it default demotes the others"""
        try:
            await self._lock(user_id)
            address = await self._get_owned(user_id, address_id, "update")
            await self.defaults.on_update(user_id, address, dict(changes))
            await self.db.flush()
            await self.defaults.verify(user_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return address

    async def delete_address(self, user_id: uuid.UUID, address_id: uuid.UUID) -> None:
        """
        Delete an address

        Deleting the default promotes the earliest remaining address in the
        same transaction. If that fails, nothing is deleted.
        """
        try:
            await self._lock(user_id)
            address = await self._get_owned(user_id, address_id, "delete")
            await self.defaults.on_delete(user_id, address)
            await self.defaults.verify(user_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Deleted address {address_id} for user {user_id}")
