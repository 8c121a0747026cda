"""
SQL-backed ledger backend.

Each write is committed on its own, the way one remote call would land on a
hosted backend. A multi-step intent therefore spans several commits.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.db.operations import (
    catalog_item_to_model,
    delete_ownership,
    delete_wishlist,
    insert_ownership,
    insert_wishlist,
    list_catalog_items,
    list_ownership,
    list_wishlist,
    ownership_to_model,
    update_ownership,
    wishlist_to_model,
)
from figureshelf.models.catalog import CollectionSnapshot, OwnershipRecord, WishlistRecord
from figureshelf.models.failure import BackendError, KnownError, NotFoundError
from figureshelf.services.ledger import CollectionLedger

logger = logging.getLogger(__name__)


class SqlLedgerBackend:
    """LedgerBackend over an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @asynccontextmanager
    async def _write(self, action: str) -> AsyncIterator[None]:
        try:
            yield
            await self._session.commit()
        except KnownError:
            await self._session.rollback()
            raise
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.exception("Database write failed: %s", action)
            raise BackendError(f"Could not {action}.", detail=type(e).__name__) from e

    async def insert_ownership(self, record: OwnershipRecord) -> OwnershipRecord:
        async with self._write("add the item to the collection"):
            row = await insert_ownership(self._session, record)
        return ownership_to_model(row)

    async def update_ownership(
        self, owner: str, item_id: str, patch: dict[str, Any]
    ) -> OwnershipRecord:
        async with self._write("update the collection item"):
            row = await update_ownership(self._session, owner, item_id, patch)
            if row is None:
                raise NotFoundError(f"Item {item_id} is not in the collection.")
        return ownership_to_model(row)

    async def delete_ownership(self, owner: str, item_id: str) -> bool:
        async with self._write("remove the item from the collection"):
            deleted = await delete_ownership(self._session, owner, item_id)
        return deleted

    async def insert_wishlist(self, record: WishlistRecord) -> WishlistRecord:
        async with self._write("add the item to the wishlist"):
            row = await insert_wishlist(self._session, record)
        return wishlist_to_model(row)

    async def delete_wishlist(self, owner: str, item_id: str) -> bool:
        async with self._write("remove the item from the wishlist"):
            deleted = await delete_wishlist(self._session, owner, item_id)
        return deleted


async def load_snapshot(
    session: AsyncSession, user_id: str, *, include_catalog: bool = True
) -> CollectionSnapshot:
    """Load the catalog plus one user's ownership and wishlist records."""
    catalog = await list_catalog_items(session) if include_catalog else []
    ownership = await list_ownership(session, user_id)
    wishlist = await list_wishlist(session, user_id)
    return CollectionSnapshot(
        catalog=[catalog_item_to_model(item) for item in catalog],
        ownership=[ownership_to_model(row) for row in ownership],
        wishlist=[wishlist_to_model(row) for row in wishlist],
    )


async def load_ledger(session: AsyncSession, user_id: str) -> CollectionLedger:
    """Build a ledger for one user, writing through this session."""
    snapshot = await load_snapshot(session, user_id, include_catalog=False)
    return CollectionLedger(
        owner=user_id,
        backend=SqlLedgerBackend(session),
        ownership=snapshot.ownership,
        wishlist=snapshot.wishlist,
    )
