"""
Filter state and display page models.

FilterState is transient per-session input to the pipeline; DisplayPage is
its derived, never-persisted output.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from figureshelf.config import ALLOWED_PAGE_SIZES
from figureshelf.models.catalog import CatalogItem, Condition

ALL = "all"


class Visibility(str, Enum):
    """Coarse filter over ownership and wishlist membership."""

    ALL = "all"
    COLLECTED = "collected"
    MISSING = "missing"
    WISHLIST = "wishlist"


class SortKey(str, Enum):
    """Fields the catalog can be ordered by."""

    NAME = "name"
    RELEASE_NA = "release_na"
    RELEASE_JP = "release_jp"
    RELEASE_EU = "release_eu"
    RELEASE_AU = "release_au"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FilterState:
    """User-chosen filters, sort order, and page position."""

    search: str = ""
    series: str = ALL
    type: str = ALL
    character: str = ALL
    visibility: Visibility = Visibility.ALL
    sort_key: SortKey = SortKey.NAME
    sort_direction: SortDirection = SortDirection.ASC
    page: int = 1
    page_size: int = 20

    def __post_init__(self) -> None:
        if self.page_size not in ALLOWED_PAGE_SIZES:
            raise ValueError(
                f"page_size must be one of {ALLOWED_PAGE_SIZES}, got {self.page_size}"
            )
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")


@dataclass(frozen=True)
class DisplayItem:
    """A catalog item annotated with the current user's status for it."""

    item: CatalogItem
    is_in_collection: bool = False
    is_in_wishlist: bool = False
    is_boxed: bool = False
    condition: Condition | None = None
    value_paid: Decimal | None = None


@dataclass(frozen=True)
class DisplayPage:
    """One page of filtered, sorted catalog items."""

    items: list[DisplayItem] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 1
