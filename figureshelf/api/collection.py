"""
Collection API endpoints.

Reads a user's ownership and wishlist records, renders the filtered display
page, computes statistics, and applies single collection intents through
the collection ledger.
"""

from dataclasses import replace
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.api.catalog import CatalogItemResponse
from figureshelf.api.dependencies import get_currency_converter, require_owner
from figureshelf.config import (
    ALLOWED_PAGE_SIZES,
    FILTER_PREFS_COOKIE,
    ITEMS_PER_PAGE_COOKIE,
    ITEMS_PER_PAGE_COOKIE_MAX_AGE,
)
from figureshelf.db import get_catalog_item, get_profile, profile_to_model
from figureshelf.db.database import get_session
from figureshelf.db.ledger_backend import SqlLedgerBackend, load_ledger, load_snapshot
from figureshelf.models.catalog import Condition, OwnershipRecord, WishlistRecord
from figureshelf.models.failure import InvalidInputError, NotFoundError
from figureshelf.models.filters import (
    DisplayItem,
    DisplayPage,
    FilterState,
    SortDirection,
    SortKey,
    Visibility,
)
from figureshelf.services.currency import CurrencyConverter, format_currency, resolve_currency
from figureshelf.services.pipeline import build_display_page
from figureshelf.services.preferences import (
    FilterPreferences,
    load_filter_preferences,
    load_page_size,
    resolve_display_preferences,
)
from figureshelf.services.stats import collection_stats, series_progress
from figureshelf.services.value_input import parse_condition, parse_value_paid

router = APIRouter(prefix="/collection", tags=["collection"])

OWNER_ONLY = [Depends(require_owner)]


class OwnershipResponse(BaseModel):
    """An owned item and its packaging/condition metadata."""

    item_id: str
    owner: str
    is_boxed: bool = False
    condition: Condition = Condition.NEW
    value_paid: str | None = Field(
        default=None,
        description="Amount in the reference currency, as a decimal string",
    )
    notes: str | None = None
    acquired_at: date | None = None

    @classmethod
    def from_model(cls, record: OwnershipRecord) -> "OwnershipResponse":
        return cls(
            item_id=record.item_id,
            owner=record.owner,
            is_boxed=record.is_boxed,
            condition=record.condition,
            value_paid=str(record.value_paid) if record.value_paid is not None else None,
            notes=record.notes,
            acquired_at=record.acquired_at,
        )


class WishlistEntryResponse(BaseModel):
    item_id: str
    owner: str
    notes: str | None = None

    @classmethod
    def from_model(cls, record: WishlistRecord) -> "WishlistEntryResponse":
        return cls(item_id=record.item_id, owner=record.owner, notes=record.notes)


class CollectionResponse(BaseModel):
    """All of a user's ownership and wishlist records."""

    user_id: str
    ownership: list[OwnershipResponse] = Field(default_factory=list)
    wishlist: list[WishlistEntryResponse] = Field(default_factory=list)


class DisplayItemResponse(BaseModel):
    item: CatalogItemResponse
    is_in_collection: bool = False
    is_in_wishlist: bool = False
    is_boxed: bool = False
    condition: Condition | None = None
    value_paid: str | None = None

    @classmethod
    def from_model(cls, display: DisplayItem) -> "DisplayItemResponse":
        return cls(
            item=CatalogItemResponse.from_model(display.item),
            is_in_collection=display.is_in_collection,
            is_in_wishlist=display.is_in_wishlist,
            is_boxed=display.is_boxed,
            condition=display.condition,
            value_paid=str(display.value_paid) if display.value_paid is not None else None,
        )


class AppliedFilters(BaseModel):
    """The filter state the page was actually computed with."""

    search: str = ""
    series: str = "all"
    type: str = "all"
    character: str = "all"
    visibility: Visibility = Visibility.ALL
    sort_key: SortKey = SortKey.NAME
    sort_direction: SortDirection = SortDirection.ASC


class DisplayPageResponse(BaseModel):
    user_id: str
    items: list[DisplayItemResponse] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 1
    filters: AppliedFilters


class SeriesProgressResponse(BaseModel):
    name: str
    total: int
    collected: int
    percentage: int


class CollectionStatsResponse(BaseModel):
    """Headline statistics and per-series progress."""

    user_id: str
    total: int = 0
    collected: int = 0
    boxed: int = 0
    wishlist: int = 0
    percentage: int = 0
    by_condition: dict[str, int] = Field(default_factory=dict)
    currency: str = "BRL"
    total_value_paid: str = "0"
    total_value_paid_formatted: str = ""
    series: list[SeriesProgressResponse] = Field(default_factory=list)


class ConditionRequest(BaseModel):
    condition: str = Field(..., examples=["used"])


class ValuePaidRequest(BaseModel):
    value: str | None = Field(
        default=None,
        description="Non-negative amount; comma or dot as decimal separator; empty clears",
        examples=["49,90"],
    )


class NotesRequest(BaseModel):
    notes: str | None = None


class OwnershipPatch(BaseModel):
    """Raw field overwrite with no side effects between fields."""

    is_boxed: bool | None = None
    condition: str | None = None
    value_paid: str | None = None
    notes: str | None = None
    acquired_at: date | None = None

class RemoveResponse(BaseModel):
    user_id: str
    item_id: str
    deleted: bool


@router.get("/{user_id}", response_model=CollectionResponse)
async def get_user_collection(
    user_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionResponse:
    """Get a user's ownership and wishlist records."""
    snapshot = await load_snapshot(session, user_id, include_catalog=False)
    return CollectionResponse(
        user_id=user_id,
        ownership=[OwnershipResponse.from_model(r) for r in snapshot.ownership],
        wishlist=[WishlistEntryResponse.from_model(r) for r in snapshot.wishlist],
    )


@router.get("/{user_id}/page", response_model=DisplayPageResponse)
async def get_display_page(
    user_id: str,
    request: Request,
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    search: str = "",
    series: str | None = None,
    type: str | None = None,
    character: str | None = None,
    visibility: Visibility | None = None,
    sort_key: SortKey | None = None,
    sort_direction: SortDirection | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: int | None = None,
) -> DisplayPageResponse:
    """
    Get one page of the catalog, filtered and annotated for a user.

    Filter selections that are not passed come from the saved filter
    preferences cookie; page size comes from the items-per-page cookie.
    Both cookies are refreshed with the effective values. A page past the
    end of the filtered results resets to page 1.
    """
    saved = load_filter_preferences(request.cookies)
    if page_size is None:
        page_size = load_page_size(request.cookies)
    elif page_size not in ALLOWED_PAGE_SIZES:
        raise InvalidInputError(
            f"page_size must be one of {', '.join(str(s) for s in ALLOWED_PAGE_SIZES)}."
        )

    prefs = FilterPreferences(
        series=series if series is not None else saved.series,
        type=type if type is not None else saved.type,
        character=character if character is not None else saved.character,
        visibility=visibility or saved.visibility,
        sort_key=sort_key or saved.sort_key,
        sort_direction=sort_direction or saved.sort_direction,
    )
    filters = FilterState(
        search=search,
        series=prefs.series,
        type=prefs.type,
        character=prefs.character,
        visibility=prefs.visibility,
        sort_key=prefs.sort_key,
        sort_direction=prefs.sort_direction,
        page=page,
        page_size=page_size,
    )

    snapshot = await load_snapshot(session, user_id)
    ownership = {record.item_id: record for record in snapshot.ownership}
    wishlist = snapshot.wishlist_ids()

    display = build_display_page(snapshot.catalog, ownership, wishlist, filters)
    if display.page > display.total_pages:
        filters = replace(filters, page=1)
        display = build_display_page(snapshot.catalog, ownership, wishlist, filters)

    response.set_cookie(
        ITEMS_PER_PAGE_COOKIE,
        str(page_size),
        max_age=ITEMS_PER_PAGE_COOKIE_MAX_AGE,
        samesite="lax",
    )
    response.set_cookie(
        FILTER_PREFS_COOKIE,
        prefs.to_cookie(),
        max_age=ITEMS_PER_PAGE_COOKIE_MAX_AGE,
        samesite="lax",
    )

    return _page_response(user_id, display, filters)


def _page_response(user_id: str, display: DisplayPage, filters: FilterState) -> DisplayPageResponse:
    return DisplayPageResponse(
        user_id=user_id,
        items=[DisplayItemResponse.from_model(d) for d in display.items],
        total=display.total,
        page=display.page,
        page_size=display.page_size,
        total_pages=display.total_pages,
        filters=AppliedFilters(
            search=filters.search,
            series=filters.series,
            type=filters.type,
            character=filters.character,
            visibility=filters.visibility,
            sort_key=filters.sort_key,
            sort_direction=filters.sort_direction,
        ),
    )


@router.get("/{user_id}/stats", response_model=CollectionStatsResponse)
async def get_collection_stats(
    user_id: str,
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
    converter: Annotated[CurrencyConverter, Depends(get_currency_converter)],
    currency: str | None = None,
) -> CollectionStatsResponse:
    """
    Get collection statistics.

    The total value paid is converted into the requested currency, or the
    user's preferred one (profile, then cookie, then BRL).
    """
    snapshot = await load_snapshot(session, user_id)
    stats = collection_stats(snapshot.catalog, snapshot.ownership, snapshot.wishlist_ids())
    progress = series_progress(snapshot.catalog, snapshot.owned_ids())

    if currency:
        target = resolve_currency(currency)
    else:
        profile = await get_profile(session, user_id)
        prefs = resolve_display_preferences(
            profile_to_model(profile) if profile else None, request.cookies
        )
        target = prefs.currency

    converted = await converter.convert(stats.total_value_paid, target)

    return CollectionStatsResponse(
        user_id=user_id,
        total=stats.total,
        collected=stats.collected,
        boxed=stats.boxed,
        wishlist=stats.wishlist,
        percentage=stats.percentage,
        by_condition=stats.by_condition,
        currency=target.value,
        total_value_paid=str(stats.total_value_paid),
        total_value_paid_formatted=format_currency(converted, target),
        series=[
            SeriesProgressResponse(
                name=s.name, total=s.total, collected=s.collected, percentage=s.percentage
            )
            for s in progress
        ],
    )


@router.post(
    "/{user_id}/items/{item_id}",
    response_model=OwnershipResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=OWNER_ONLY,
)
async def add_item(
    user_id: str,
    item_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OwnershipResponse:
    """
    Add a catalog item to the collection as new and unboxed.

    A wishlisted item is removed from the wishlist in the same call.
    """
    if await get_catalog_item(session, item_id) is None:
        raise NotFoundError(f"Catalog item {item_id} not found.")

    ledger = await load_ledger(session, user_id)
    record = await ledger.add_to_collection(item_id)
    return OwnershipResponse.from_model(record)


@router.post(
    "/{user_id}/records/{item_id}",
    response_model=OwnershipResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=OWNER_ONLY,
)
async def insert_ownership_record(
    user_id: str,
    item_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OwnershipResponse:
    """
    Insert an ownership record and nothing else. 409 if it already exists.

    For clients that run the collection ledger themselves and remove the
    wishlist entry as a separate step.
    """
    if await get_catalog_item(session, item_id) is None:
        raise NotFoundError(f"Catalog item {item_id} not found.")

    record = await SqlLedgerBackend(session).insert_ownership(
        OwnershipRecord(item_id=item_id, owner=user_id)
    )
    return OwnershipResponse.from_model(record)


@router.delete(
    "/{user_id}/items/{item_id}",
    response_model=RemoveResponse,
    dependencies=OWNER_ONLY,
)
async def remove_item(
    user_id: str,
    item_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> RemoveResponse:
    """Remove an item from the collection. Removing an unowned item is a no-op."""
    ledger = await load_ledger(session, user_id)
    deleted = await ledger.remove_from_collection(item_id)
    return RemoveResponse(user_id=user_id, item_id=item_id, deleted=deleted)


@router.patch(
    "/{user_id}/items/{item_id}",
    response_model=OwnershipResponse,
    dependencies=OWNER_ONLY,
)
async def patch_item(
    user_id: str,
    item_id: str,
    request: OwnershipPatch,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OwnershipResponse:
    """
    Overwrite fields on an owned item.

    Only fields present in the body are written, with no coupling between
    them; use the boxed toggle for the boxed-means-new rule.
    """
    sent = request.model_dump(exclude_unset=True)
    if not sent:
        raise InvalidInputError("Nothing to update.")

    patch: dict[str, object] = {}
    if "is_boxed" in sent:
        if sent["is_boxed"] is None:
            raise InvalidInputError("is_boxed cannot be null.")
        patch["is_boxed"] = sent["is_boxed"]
    if "condition" in sent:
        if sent["condition"] is None:
            raise InvalidInputError("condition cannot be null.")
        patch["condition"] = parse_condition(sent["condition"])
    if "value_paid" in sent:
        patch["value_paid"] = parse_value_paid(sent["value_paid"])
    if "notes" in sent:
        patch["notes"] = sent["notes"] or None
    if "acquired_at" in sent:
        patch["acquired_at"] = sent["acquired_at"]

    record = await SqlLedgerBackend(session).update_ownership(user_id, item_id, patch)
    return OwnershipResponse.from_model(record)


@router.post(
    "/{user_id}/items/{item_id}/boxed",
    response_model=OwnershipResponse,
    dependencies=OWNER_ONLY,
)
async def toggle_item_boxed(
    user_id: str,
    item_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OwnershipResponse:
    """Flip the boxed flag. Boxing also resets the condition to new."""
    ledger = await load_ledger(session, user_id)
    return OwnershipResponse.from_model(await ledger.toggle_boxed(item_id))


@router.put(
    "/{user_id}/items/{item_id}/condition",
    response_model=OwnershipResponse,
    dependencies=OWNER_ONLY,
)
async def set_item_condition(
    user_id: str,
    item_id: str,
    request: ConditionRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OwnershipResponse:
    """Set the condition (new, used, damaged)."""
    ledger = await load_ledger(session, user_id)
    return OwnershipResponse.from_model(await ledger.set_condition(item_id, request.condition))


@router.put(
    "/{user_id}/items/{item_id}/value",
    response_model=OwnershipResponse,
    dependencies=OWNER_ONLY,
)
async def set_item_value(
    user_id: str,
    item_id: str,
    request: ValuePaidRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OwnershipResponse:
    """Set or clear the value paid, in the reference currency."""
    ledger = await load_ledger(session, user_id)
    return OwnershipResponse.from_model(await ledger.set_value_paid(item_id, request.value))


@router.put(
    "/{user_id}/items/{item_id}/notes",
    response_model=OwnershipResponse,
    dependencies=OWNER_ONLY,
)
async def set_item_notes(
    user_id: str,
    item_id: str,
    request: NotesRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OwnershipResponse:
    """Set or clear free-text notes on an owned item."""
    ledger = await load_ledger(session, user_id)
    return OwnershipResponse.from_model(await ledger.set_notes(item_id, request.notes))
