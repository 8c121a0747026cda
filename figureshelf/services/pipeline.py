"""
Filter, sort, and paginate the catalog for display.

Given the full catalog, the user's owned and wishlisted item ids, and a
FilterState, produce one DisplayPage. Every function here is pure: identical
inputs always yield an identical page.

Stages run in a fixed order, each consuming the previous stage's output:
1. Text filter (name or series, case-insensitive)
2. Categorical filters (series, type, character)
3. Visibility filter (all, collected, missing, wishlist)
4. Sort (name, or one of the regional release dates)
5. Paginate
"""

import math
import unicodedata
from collections.abc import Collection, Iterable, Mapping, Sequence
from datetime import date

from figureshelf.models.catalog import CatalogItem, OwnershipRecord
from figureshelf.models.filters import (
    ALL,
    DisplayItem,
    DisplayPage,
    FilterState,
    SortDirection,
    SortKey,
    Visibility,
)

# Owned ids, or owned records keyed by item id when annotations need details
Ownership = Collection[str] | Mapping[str, OwnershipRecord]


def matches_search(item: CatalogItem, search: str) -> bool:
    """
    Case-insensitive substring match on name or series.

    An empty search matches everything. A missing series never matches.
    """
    if not search:
        return True
    needle = search.casefold()
    if needle in item.name.casefold():
        return True
    return item.series is not None and needle in item.series.casefold()


def matches_categories(item: CatalogItem, filters: FilterState) -> bool:
    """Exact match on series, type, and character unless the selection is "all"."""
    if filters.series != ALL and item.series != filters.series:
        return False
    if filters.type != ALL and item.type != filters.type:
        return False
    return filters.character == ALL or item.character == filters.character


def matches_visibility(
    item: CatalogItem,
    visibility: Visibility,
    ownership: Ownership,
    wishlist: Collection[str],
) -> bool:
    """Keep the item according to the ownership/wishlist visibility mode."""
    if visibility == Visibility.COLLECTED:
        return item.id in ownership
    if visibility == Visibility.MISSING:
        return item.id not in ownership
    if visibility == Visibility.WISHLIST:
        return item.id in wishlist
    return True


def filter_items(
    catalog: Iterable[CatalogItem],
    filters: FilterState,
    ownership: Ownership,
    wishlist: Collection[str],
) -> list[CatalogItem]:
    """Apply the text, categorical, and visibility stages in order."""
    text_matched = [item for item in catalog if matches_search(item, filters.search)]
    categorised = [item for item in text_matched if matches_categories(item, filters)]
    return [
        item
        for item in categorised
        if matches_visibility(item, filters.visibility, ownership, wishlist)
    ]


def name_sort_key(name: str) -> str:
    """
    Collation key for names.

    Accents are stripped and case is folded, so "Élite" sorts beside "elite"
    the way a locale-aware comparison would.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def parse_release_date(value: str | None) -> date:
    """
    Parse an ISO release date.

    Absent or unparseable dates become `date.min`, so unknown releases sort
    before every known one in ascending order.
    """
    if not value:
        return date.min
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return date.min


def sort_items(
    items: Iterable[CatalogItem],
    sort_key: SortKey,
    direction: SortDirection,
) -> list[CatalogItem]:
    """Order items by name or release date; ties break on item id."""
    reverse = direction == SortDirection.DESC

    if sort_key == SortKey.NAME:
        return sorted(items, key=lambda i: (name_sort_key(i.name), i.id), reverse=reverse)

    field_name = sort_key.value
    return sorted(
        items,
        key=lambda i: (parse_release_date(getattr(i, field_name)), i.id),
        reverse=reverse,
    )


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for `total` items; never less than one."""
    return max(1, math.ceil(total / page_size))


def paginate(items: Sequence[CatalogItem], page: int, page_size: int) -> list[CatalogItem]:
    """Slice out a 1-based page."""
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


def annotate(
    item: CatalogItem,
    ownership: Ownership,
    wishlist: Collection[str],
) -> DisplayItem:
    """Attach the user's collection and wishlist status to an item."""
    record = ownership.get(item.id) if isinstance(ownership, Mapping) else None
    return DisplayItem(
        item=item,
        is_in_collection=item.id in ownership,
        is_in_wishlist=item.id in wishlist,
        is_boxed=record.is_boxed if record else False,
        condition=record.condition if record else None,
        value_paid=record.value_paid if record else None,
    )


def build_display_page(
    catalog: Iterable[CatalogItem],
    ownership: Ownership,
    wishlist: Collection[str],
    filters: FilterState,
) -> DisplayPage:
    """
    Run the full pipeline and return one page.

    The caller resets `filters.page` to 1 when a filter change leaves it past
    the last page; this function slices whatever page it is given.
    """
    filtered = filter_items(catalog, filters, ownership, wishlist)
    ordered = sort_items(filtered, filters.sort_key, filters.sort_direction)
    page_items = paginate(ordered, filters.page, filters.page_size)

    return DisplayPage(
        items=[annotate(item, ownership, wishlist) for item in page_items],
        total=len(ordered),
        page=filters.page,
        page_size=filters.page_size,
        total_pages=total_pages(len(ordered), filters.page_size),
    )


def filter_options(catalog: Iterable[CatalogItem]) -> dict[str, list[str]]:
    """Distinct series, type, and character values for filter dropdowns."""
    series: set[str] = set()
    types: set[str] = set()
    characters: set[str] = set()
    for item in catalog:
        if item.series:
            series.add(item.series)
        if item.type:
            types.add(item.type)
        if item.character:
            characters.add(item.character)

    return {
        "series": sorted(series, key=name_sort_key),
        "type": sorted(types, key=name_sort_key),
        "character": sorted(characters, key=name_sort_key),
    }
