"""
Wishlist API endpoints.

The toggle endpoint is the user-facing intent. The plain POST and DELETE
endpoints are single remote writes for clients that run the collection
ledger themselves.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.api.collection import OWNER_ONLY, WishlistEntryResponse
from figureshelf.db import get_catalog_item
from figureshelf.db.database import get_session
from figureshelf.db.ledger_backend import SqlLedgerBackend, load_ledger, load_snapshot
from figureshelf.models.catalog import WishlistRecord
from figureshelf.models.failure import NotFoundError

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


class WishlistToggleResponse(BaseModel):
    user_id: str
    item_id: str
    in_wishlist: bool


class WishlistRemoveResponse(BaseModel):
    user_id: str
    item_id: str
    deleted: bool


@router.get("/{user_id}", response_model=list[WishlistEntryResponse])
async def get_wishlist(
    user_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[WishlistEntryResponse]:
    """Get a user's wishlist."""
    snapshot = await load_snapshot(session, user_id, include_catalog=False)
    return [WishlistEntryResponse.from_model(r) for r in snapshot.wishlist]


@router.post(
    "/{user_id}/items/{item_id}/toggle",
    response_model=WishlistToggleResponse,
    dependencies=OWNER_ONLY,
)
async def toggle_wishlist(
    user_id: str,
    item_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> WishlistToggleResponse:
    """Add the item to the wishlist, or remove it if it is already there."""
    await _require_catalog_item(session, item_id)
    ledger = await load_ledger(session, user_id)
    in_wishlist = await ledger.toggle_wishlist(item_id)
    return WishlistToggleResponse(user_id=user_id, item_id=item_id, in_wishlist=in_wishlist)


@router.post(
    "/{user_id}/items/{item_id}",
    response_model=WishlistEntryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=OWNER_ONLY,
)
async def add_wishlist_entry(
    user_id: str,
    item_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> WishlistEntryResponse:
    """Insert a wishlist entry. 409 if it already exists."""
    await _require_catalog_item(session, item_id)
    record = await SqlLedgerBackend(session).insert_wishlist(
        WishlistRecord(item_id=item_id, owner=user_id)
    )
    return WishlistEntryResponse.from_model(record)


@router.delete(
    "/{user_id}/items/{item_id}",
    response_model=WishlistRemoveResponse,
    dependencies=OWNER_ONLY,
)
async def remove_wishlist_entry(
    user_id: str,
    item_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> WishlistRemoveResponse:
    """Delete a wishlist entry."""
    deleted = await SqlLedgerBackend(session).delete_wishlist(user_id, item_id)
    return WishlistRemoveResponse(user_id=user_id, item_id=item_id, deleted=deleted)


async def _require_catalog_item(session: AsyncSession, item_id: str) -> None:
    if await get_catalog_item(session, item_id) is None:
        raise NotFoundError(f"Catalog item {item_id} not found.")
