"""
Default address bookkeeping

Every user with at least one address has exactly one default address, and a
user without addresses has none. Callers run each operation inside a
transaction that has first taken the per-user lock (``AddressRepository.lock_user``);
the count, the promotion or demotion and the triggering insert or delete
then commit or roll back together.
"""

from typing import List, Optional
import logging
import uuid

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import (
    AddressNotFoundException,
    InvalidArgumentException,
    InvariantViolationException,
)
from storefront.models import Address, User

logger = logging.getLogger(__name__)

class AddressRepository:
    """Address persistence scoped by owning user"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lock_user(self, user_id: uuid.UUID) -> bool:
        """
        Serialize address mutations for one user.

        Takes the user row lock on PostgreSQL. SQLite engines already hold the
        database write lock from BEGIN IMMEDIATE.
        """
        result = await self.db.execute(
            select(User.id).where(User.id == user_id).with_for_update()
        )
        return result.scalar_one_or_none() is not None

    async def count_by_user(self, user_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None) -> int:
        query = select(func.count(Address.id)).where(Address.user_id == user_id)
        if exclude_id is not None:
            query = query.where(Address.id != exclude_id)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def count_defaults(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(Address.id)).where(
                Address.user_id == user_id,
                Address.is_default.is_(True),
            )
        )
        return result.scalar_one()

    async def find_by_user(self, user_id: uuid.UUID) -> List[Address]:
        result = await self.db.execute(
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.created_at, Address.id)
        )
        return list(result.scalars().all())

    async def get(self, address_id: uuid.UUID) -> Optional[Address]:
        result = await self.db.execute(
            select(Address)
            .where(Address.id == address_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def add(self, address: Address) -> Address:
        self.db.add(address)
        await self.db.flush()
        return address

    async def demote_others(self, user_id: uuid.UUID, keep_id: uuid.UUID) -> int:
        """Clear the default flag on every address of the user except one"""
        result = await self.db.execute(
            update(Address)
            .where(
                Address.user_id == user_id,
                Address.id != keep_id,
                Address.is_default.is_(True),
            )
            .values(is_default=False)
        )
        return result.rowcount

    async def promote_first_remaining(
        self,
        user_id: uuid.UUID,
        exclude_id: uuid.UUID,
    ) -> Optional[uuid.UUID]:
        """Make the earliest-created address other than ``exclude_id`` the default"""
        result = await self.db.execute(
            select(Address.id)
            .where(Address.user_id == user_id, Address.id != exclude_id)
            .order_by(Address.created_at, Address.id)
            .limit(1)
        )
        candidate_id = result.scalar_one_or_none()
        if candidate_id is None:
            return None

        result = await self.db.execute(
            update(Address)
            .where(Address.id == candidate_id, Address.user_id == user_id)
            .values(is_default=True)
        )
        return candidate_id if result.rowcount == 1 else None

    async def delete_by_id(self, user_id: uuid.UUID, address_id: uuid.UUID) -> int:
        result = await self.db.execute(
            delete(Address)
            .where(Address.id == address_id, Address.user_id == user_id)
        )
        return result.rowcount

class DefaultAddressManager:
    """Keeps exactly one default address per user across create, update and delete"""

    def __init__(self, repository: AddressRepository):
        self.repository = repository

    async def on_create(self, user_id: uuid.UUID, address: Address) -> Address:
        """
        Insert an address, settling the default flag first.

        The first address is always the default, whatever the caller asked
        for. A later address created as default takes the flag from its
        siblings.
        """
        existing = await self.repository.count_by_user(user_id)
        address.user_id = user_id
        if existing == 0:
            address.is_default = True
        else:
            address.is_default = bool(address.is_default)

        await self.repository.add(address)

        if address.is_default and existing > 0:
            demoted = await self.repository.demote_others(user_id, address.id)
            logger.info(f"Address {address.id} is now default for user {user_id}, demoted {demoted}")
        return address

    async def on_update(self, user_id: uuid.UUID, address: Address, changes: dict) -> Address:
        """
        Apply field changes to an address.

        Raises:
            InvalidArgumentException: If the change would clear the only default
        """
        make_default = changes.pop("is_default", None)
        if make_default is False and address.is_default:
            raise InvalidArgumentException(
                "The default address cannot be unset; choose another default address instead"
            )

        for field, value in changes.items():
            setattr(address, field, value)

        if make_default and not address.is_default:
            address.is_default = True
            await self.repository.db.flush()
            await self.repository.demote_others(user_id, address.id)
            logger.info(f"Address {address.id} is now default for user {user_id}")
        return address

    async def on_delete(self, user_id: uuid.UUID, address: Address) -> Optional[uuid.UUID]:
        """
        Delete an address, promoting a sibling first if it was the default.

        Returns the id of the promoted address, if any.

        Raises:
            InvariantViolationException: If a required promotion did not land
            AddressNotFoundException: If the address vanished before the delete
        """
        promoted_id = None
        if address.is_default:
            remaining = await self.repository.count_by_user(user_id, exclude_id=address.id)
            if remaining > 0:
                promoted_id = await self.repository.promote_first_remaining(user_id, address.id)
                if promoted_id is None:
                    raise InvariantViolationException(
                        "Could not promote another address to default; deletion aborted"
                    )
                logger.info(f"Promoted address {promoted_id} to default for user {user_id}")

        deleted = await self.repository.delete_by_id(user_id, address.id)
        if deleted != 1:
            raise AddressNotFoundException()
        return promoted_id

    async def verify(self, user_id: uuid.UUID) -> None:
        """
        Check the invariant before commit.

        Raises:
            InvariantViolationException: If the user's default count is wrong
        """
        total = await self.repository.count_by_user(user_id)
        defaults = await self.repository.count_defaults(user_id)
        expected = 1 if total > 0 else 0
        if defaults != expected:
            logger.error(
                f"Default address invariant broken for user {user_id}: "
                f"{defaults} defaults among {total} addresses"
            )
            raise InvariantViolationException(
                f"Expected {expected} default address(es), found {defaults}"
            )
