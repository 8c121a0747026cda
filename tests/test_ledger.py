"""Tests for the collection ledger's mutation operations."""

from decimal import Decimal
from typing import Any

import pytest

from figureshelf.models.catalog import CatalogItem, Condition, OwnershipRecord, WishlistRecord
from figureshelf.models.failure import (
    BackendError,
    DuplicateRecordError,
    InvalidInputError,
    NotFoundError,
    PartialMutationError,
)
from figureshelf.models.filters import FilterState, Visibility
from figureshelf.services.ledger import WISHLIST_REMOVAL_ATTEMPTS, CollectionLedger
from figureshelf.services.pipeline import build_display_page

OWNER = "user-1"


class FakeBackend:
    """In-memory LedgerBackend that can be told to fail specific calls."""

    def __init__(self) -> None:
        self.ownership: dict[str, OwnershipRecord] = {}
        self.wishlist: dict[str, WishlistRecord] = {}
        self.calls: list[str] = []
        self.failures: dict[str, int] = {}

    def fail(self, method: str, times: int = 1) -> None:
        self.failures[method] = times

    def _check(self, method: str) -> None:
        self.calls.append(method)
        if self.failures.get(method, 0) > 0:
            self.failures[method] -= 1
            raise BackendError(f"{method} failed")

    async def insert_ownership(self, record: OwnershipRecord) -> OwnershipRecord:
        self._check("insert_ownership")
        if record.item_id in self.ownership:
            raise DuplicateRecordError("duplicate")
        self.ownership[record.item_id] = record
        return record

    async def update_ownership(
        self, owner: str, item_id: str, patch: dict[str, Any]
    ) -> OwnershipRecord:
        self._check("update_ownership")
        updated = self.ownership[item_id].with_changes(**patch)
        self.ownership[item_id] = updated
        return updated

    async def delete_ownership(self, owner: str, item_id: str) -> bool:
        self._check("delete_ownership")
        return self.ownership.pop(item_id, None) is not None

    async def insert_wishlist(self, record: WishlistRecord) -> WishlistRecord:
        self._check("insert_wishlist")
        self.wishlist[record.item_id] = record
        return record

    async def delete_wishlist(self, owner: str, item_id: str) -> bool:
        self._check("delete_wishlist")
        return self.wishlist.pop(item_id, None) is not None


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


def make_ledger(
    backend: FakeBackend,
    owned: list[OwnershipRecord] | None = None,
    wishlisted: list[str] | None = None,
) -> CollectionLedger:
    for record in owned or []:
        backend.ownership[record.item_id] = record
    wishlist = [WishlistRecord(item_id=i, owner=OWNER) for i in wishlisted or []]
    for record in wishlist:
        backend.wishlist[record.item_id] = record
    return CollectionLedger(OWNER, backend, ownership=owned or [], wishlist=wishlist)


class TestAddToCollection:
    async def test_creates_new_unboxed_record(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend)

        record = await ledger.add_to_collection("1")

        assert record.condition == Condition.NEW
        assert record.is_boxed is False
        assert ledger.owns("1")
        assert "1" in backend.ownership

    async def test_removes_wishlisted_item(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, wishlisted=["1"])

        await ledger.add_to_collection("1")

        assert ledger.owns("1")
        assert "1" not in ledger.wishlist_ids()
        assert "1" not in backend.wishlist

    async def test_not_wishlisted_makes_one_call(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend)

        await ledger.add_to_collection("1")

        assert backend.calls == ["insert_ownership"]

    async def test_duplicate_is_rejected_without_remote_call(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, owned=[OwnershipRecord(item_id="1", owner=OWNER)])

        with pytest.raises(DuplicateRecordError):
            await ledger.add_to_collection("1")

        assert backend.calls == []

    async def test_failed_insert_leaves_state_unchanged(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, wishlisted=["1"])
        backend.fail("insert_ownership")

        with pytest.raises(BackendError):
            await ledger.add_to_collection("1")

        assert not ledger.owns("1")
        assert "1" in ledger.wishlist_ids()
        assert "delete_wishlist" not in backend.calls

    async def test_wishlist_removal_retried_once(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, wishlisted=["1"])
        backend.fail("delete_wishlist", times=1)

        await ledger.add_to_collection("1")

        assert backend.calls.count("delete_wishlist") == 2
        assert "1" not in ledger.wishlist_ids()

    async def test_partial_failure_reports_applied_and_failed_steps(
        self, backend: FakeBackend
    ) -> None:
        ledger = make_ledger(backend, wishlisted=["1"])
        backend.fail("delete_wishlist", times=WISHLIST_REMOVAL_ATTEMPTS)

        with pytest.raises(PartialMutationError) as exc_info:
            await ledger.add_to_collection("1")

        assert exc_info.value.applied == ["add to collection"]
        assert exc_info.value.failed == "remove from wishlist"
        assert exc_info.value.status_code == 502
        # The ownership write landed, the wishlist entry is still there
        assert ledger.owns("1")
        assert "1" in ledger.wishlist_ids()
        assert backend.calls.count("delete_wishlist") == WISHLIST_REMOVAL_ATTEMPTS

    async def test_added_item_leaves_wishlist_view(self, backend: FakeBackend) -> None:
        catalog = [CatalogItem(id="1", name="Mario"), CatalogItem(id="2", name="Link")]
        ledger = make_ledger(backend, wishlisted=["1", "2"])
        filters = FilterState(visibility=Visibility.WISHLIST)

        await ledger.add_to_collection("1")

        page = build_display_page(catalog, ledger.ownership, ledger.wishlist_ids(), filters)
        assert [d.item.id for d in page.items] == ["2"]


class TestRemoveFromCollection:
    async def test_removes_owned_item(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, owned=[OwnershipRecord(item_id="1", owner=OWNER)])

        assert await ledger.remove_from_collection("1") is True
        assert not ledger.owns("1")
        assert backend.ownership == {}

    async def test_absent_item_is_noop(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend)

        assert await ledger.remove_from_collection("1") is False
        assert backend.calls == []

    async def test_failure_keeps_item(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, owned=[OwnershipRecord(item_id="1", owner=OWNER)])
        backend.fail("delete_ownership")

        with pytest.raises(BackendError):
            await ledger.remove_from_collection("1")

        assert ledger.owns("1")


class TestToggleBoxed:
    async def test_boxing_forces_new_and_unboxing_keeps_it(self, backend: FakeBackend) -> None:
        record = OwnershipRecord(item_id="1", owner=OWNER, is_boxed=False, condition=Condition.USED)
        ledger = make_ledger(backend, owned=[record])

        boxed = await ledger.toggle_boxed("1")
        assert boxed.is_boxed is True
        assert boxed.condition == Condition.NEW

        unboxed = await ledger.toggle_boxed("1")
        assert unboxed.is_boxed is False
        assert unboxed.condition == Condition.NEW

    async def test_unboxing_leaves_condition_untouched(self, backend: FakeBackend) -> None:
        record = OwnershipRecord(
            item_id="1", owner=OWNER, is_boxed=True, condition=Condition.DAMAGED
        )
        ledger = make_ledger(backend, owned=[record])

        unboxed = await ledger.toggle_boxed("1")

        assert unboxed.is_boxed is False
        assert unboxed.condition == Condition.DAMAGED

    async def test_not_owned_raises(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend)

        with pytest.raises(NotFoundError):
            await ledger.toggle_boxed("1")

    async def test_failure_leaves_local_record(self, backend: FakeBackend) -> None:
        record = OwnershipRecord(item_id="1", owner=OWNER, condition=Condition.USED)
        ledger = make_ledger(backend, owned=[record])
        backend.fail("update_ownership")

        with pytest.raises(BackendError):
            await ledger.toggle_boxed("1")

        assert ledger.get("1") == record


class TestSetters:
    async def test_set_condition_does_not_touch_boxed(self, backend: FakeBackend) -> None:
        record = OwnershipRecord(item_id="1", owner=OWNER, is_boxed=True)
        ledger = make_ledger(backend, owned=[record])

        updated = await ledger.set_condition("1", "damaged")

        assert updated.condition == Condition.DAMAGED
        assert updated.is_boxed is True

    async def test_set_condition_rejects_unknown(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, owned=[OwnershipRecord(item_id="1", owner=OWNER)])

        with pytest.raises(InvalidInputError):
            await ledger.set_condition("1", "mint")

        assert backend.calls == []

    async def test_set_value_paid_parses_comma(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, owned=[OwnershipRecord(item_id="1", owner=OWNER)])

        updated = await ledger.set_value_paid("1", "49,90")

        assert updated.value_paid == Decimal("49.90")

    async def test_set_value_paid_empty_clears(self, backend: FakeBackend) -> None:
        record = OwnershipRecord(item_id="1", owner=OWNER, value_paid=Decimal("10.00"))
        ledger = make_ledger(backend, owned=[record])

        updated = await ledger.set_value_paid("1", "")

        assert updated.value_paid is None

    async def test_invalid_value_makes_no_remote_call(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, owned=[OwnershipRecord(item_id="1", owner=OWNER)])

        with pytest.raises(InvalidInputError):
            await ledger.set_value_paid("1", "-5")

        assert backend.calls == []

    async def test_set_value_paid_not_owned(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend)

        with pytest.raises(NotFoundError):
            await ledger.set_value_paid("1", "10")

    async def test_set_notes(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, owned=[OwnershipRecord(item_id="1", owner=OWNER)])

        assert (await ledger.set_notes("1", "gift")).notes == "gift"
        assert (await ledger.set_notes("1", "")).notes is None


class TestToggleWishlist:
    async def test_adds_then_removes(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend)

        assert await ledger.toggle_wishlist("1") is True
        assert "1" in backend.wishlist
        assert await ledger.toggle_wishlist("1") is False
        assert "1" not in backend.wishlist

    async def test_ignores_ownership(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, owned=[OwnershipRecord(item_id="1", owner=OWNER)])

        assert await ledger.toggle_wishlist("1") is True
        assert ledger.owns("1")

    async def test_failure_leaves_wishlist_unchanged(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend)
        backend.fail("insert_wishlist")

        with pytest.raises(BackendError):
            await ledger.toggle_wishlist("1")

        assert ledger.wishlist_ids() == set()


class TestReadAccess:
    def test_ownership_property_is_a_copy(self, backend: FakeBackend) -> None:
        ledger = make_ledger(backend, owned=[OwnershipRecord(item_id="1", owner=OWNER)])

        ledger.ownership.clear()

        assert ledger.owns("1")
