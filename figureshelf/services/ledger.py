"""
Collection ledger.

Holds one user's ownership and wishlist records in memory and applies single
user intents (add, remove, toggle boxed, set condition, set value paid,
toggle wishlist) through a LedgerBackend.

Every mutation is acknowledged-then-applied: the remote write goes first and
the in-memory records change only after the backend accepts it. A failed
write leaves local state exactly as it was and propagates the error.
"""

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from figureshelf.models.catalog import Condition, OwnershipRecord, WishlistRecord
from figureshelf.models.failure import (
    BackendError,
    DuplicateRecordError,
    NotFoundError,
    PartialMutationError,
)
from figureshelf.services.value_input import parse_condition, parse_value_paid

logger = logging.getLogger(__name__)

# Attempts for the wishlist-removal step of add_to_collection
WISHLIST_REMOVAL_ATTEMPTS = 2


class LedgerBackend(Protocol):
    """Remote store the ledger writes through."""

    async def insert_ownership(self, record: OwnershipRecord) -> OwnershipRecord: ...

    async def update_ownership(
        self, owner: str, item_id: str, patch: dict[str, Any]
    ) -> OwnershipRecord: ...

    async def delete_ownership(self, owner: str, item_id: str) -> bool: ...

    async def insert_wishlist(self, record: WishlistRecord) -> WishlistRecord: ...

    async def delete_wishlist(self, owner: str, item_id: str) -> bool: ...


class CollectionLedger:
    """
    One user's ownership and wishlist state.

    Args:
        owner: User id all records belong to
        backend: Remote store for writes
        ownership: Ownership records loaded from the backend
        wishlist: Wishlist records loaded from the backend
    """

    def __init__(
        self,
        owner: str,
        backend: LedgerBackend,
        ownership: Iterable[OwnershipRecord] = (),
        wishlist: Iterable[WishlistRecord] = (),
    ) -> None:
        self.owner = owner
        self._backend = backend
        self._ownership: dict[str, OwnershipRecord] = {r.item_id: r for r in ownership}
        self._wishlist: dict[str, WishlistRecord] = {r.item_id: r for r in wishlist}

    # --- Read access ---

    @property
    def ownership(self) -> dict[str, OwnershipRecord]:
        """Owned records keyed by item id (a copy)."""
        return dict(self._ownership)

    @property
    def wishlist(self) -> dict[str, WishlistRecord]:
        """Wishlist records keyed by item id (a copy)."""
        return dict(self._wishlist)

    def owned_ids(self) -> set[str]:
        return set(self._ownership)

    def wishlist_ids(self) -> set[str]:
        return set(self._wishlist)

    def owns(self, item_id: str) -> bool:
        return item_id in self._ownership

    def get(self, item_id: str) -> OwnershipRecord | None:
        return self._ownership.get(item_id)

    def _require(self, item_id: str) -> OwnershipRecord:
        record = self._ownership.get(item_id)
        if record is None:
            raise NotFoundError(f"Item {item_id} is not in the collection.")
        return record

    # --- Mutations ---

    async def add_to_collection(self, item_id: str) -> OwnershipRecord:
        """
        Add an item as new and unboxed, dropping it from the wishlist.

        The ownership write lands first. If the wishlist removal then keeps
        failing, PartialMutationError reports that the item is owned but
        still wishlisted.
        """
        if item_id in self._ownership:
            raise DuplicateRecordError(f"Item {item_id} is already in the collection.")

        stored = await self._backend.insert_ownership(
            OwnershipRecord(item_id=item_id, owner=self.owner)
        )
        self._ownership[item_id] = stored

        if item_id in self._wishlist:
            await self._remove_wishlisted_after_add(item_id)

        return stored

    async def _remove_wishlisted_after_add(self, item_id: str) -> None:
        last_error: BackendError | None = None
        for attempt in range(1, WISHLIST_REMOVAL_ATTEMPTS + 1):
            try:
                await self._backend.delete_wishlist(self.owner, item_id)
            except BackendError as e:
                last_error = e
                logger.warning(
                    "Wishlist removal for %s failed (attempt %d/%d): %s",
                    item_id,
                    attempt,
                    WISHLIST_REMOVAL_ATTEMPTS,
                    e.message,
                )
                continue
            self._wishlist.pop(item_id, None)
            return

        raise PartialMutationError(
            applied=["add to collection"],
            failed="remove from wishlist",
            detail=last_error.message if last_error else None,
        ) from last_error

    async def remove_from_collection(self, item_id: str) -> bool:
        """
        Remove an item from the collection.

        Returns False without any remote call when the item is not owned.
        """
        if item_id not in self._ownership:
            return False

        await self._backend.delete_ownership(self.owner, item_id)
        del self._ownership[item_id]
        return True

    async def toggle_boxed(self, item_id: str) -> OwnershipRecord:
        """
        Flip the boxed flag.

        Boxing an item also resets its condition to new; unboxing leaves the
        condition alone.
        """
        record = self._require(item_id)
        patch: dict[str, Any] = {"is_boxed": not record.is_boxed}
        if patch["is_boxed"]:
            patch["condition"] = Condition.NEW
        return await self._update(item_id, patch)

    async def set_condition(self, item_id: str, condition: Condition | str) -> OwnershipRecord:
        """Overwrite the condition. The boxed flag is untouched."""
        parsed = parse_condition(condition)
        self._require(item_id)
        return await self._update(item_id, {"condition": parsed})

    async def set_value_paid(self, item_id: str, text: str | None) -> OwnershipRecord:
        """Overwrite the value paid from form text; empty text clears it."""
        amount = parse_value_paid(text)
        self._require(item_id)
        return await self._update(item_id, {"value_paid": amount})

    async def set_notes(self, item_id: str, notes: str | None) -> OwnershipRecord:
        self._require(item_id)
        return await self._update(item_id, {"notes": notes or None})

    async def toggle_wishlist(self, item_id: str) -> bool:
        """
        Add the item to the wishlist, or remove it if already there.

        Ownership is not consulted. Returns True if the item is now wishlisted.
        """
        if item_id in self._wishlist:
            await self._backend.delete_wishlist(self.owner, item_id)
            del self._wishlist[item_id]
            return False

        stored = await self._backend.insert_wishlist(
            WishlistRecord(item_id=item_id, owner=self.owner)
        )
        self._wishlist[item_id] = stored
        return True

    async def _update(self, item_id: str, patch: dict[str, Any]) -> OwnershipRecord:
        updated = await self._backend.update_ownership(self.owner, item_id, patch)
        self._ownership[item_id] = updated
        return updated
