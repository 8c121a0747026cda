from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum


class Condition(str, Enum):
    """Physical condition of an owned figure."""

    NEW = "new"
    USED = "used"
    DAMAGED = "damaged"


class FigureType(str, Enum):
    """Figure form factor, as encoded in the catalog hex id."""

    FIGURE = "Figure"
    CARD = "Card"
    YARN = "Yarn"
    BAND = "Band"
    BLOCK = "Block"


RELEASE_REGIONS = ("na", "jp", "eu", "au")


@dataclass(frozen=True)
class CatalogItem:
    """
    A collectible definition shared across all users.

    Release dates are ISO `YYYY-MM-DD` strings keyed by region; any of them
    may be absent.
    """

    id: str
    name: str
    series: str | None = None
    type: str | None = None
    character: str | None = None
    image_path: str | None = None
    hex_id: str | None = None
    release_na: str | None = None
    release_jp: str | None = None
    release_eu: str | None = None
    release_au: str | None = None

    def release_date(self, region: str) -> str | None:
        """Release date string for a region (na, jp, eu, au)."""
        if region not in RELEASE_REGIONS:
            raise ValueError(f"Unknown release region: {region}")
        value: str | None = getattr(self, f"release_{region}")
        return value


@dataclass
class OwnershipRecord:
    """A figure owned by a user, with packaging and condition metadata."""

    item_id: str
    owner: str
    is_boxed: bool = False
    condition: Condition = Condition.NEW
    value_paid: Decimal | None = None
    notes: str | None = None
    acquired_at: date | None = None

    def with_changes(self, **changes: object) -> "OwnershipRecord":
        """Copy of this record with the given fields replaced."""
        return replace(self, **changes)  # type: ignore[arg-type]


@dataclass(frozen=True)
class WishlistRecord:
    """A figure a user wants but does not own yet."""

    item_id: str
    owner: str
    notes: str | None = None


@dataclass
class Profile:
    """Per-user profile and display preferences."""

    user_id: str
    username: str | None = None
    avatar_url: str | None = None
    birthdate: date | None = None
    country: str | None = None
    language: str | None = None
    currency: str | None = None


@dataclass
class CollectionSnapshot:
    """Everything one user's session needs, loaded in one go."""

    catalog: list[CatalogItem] = field(default_factory=list)
    ownership: list[OwnershipRecord] = field(default_factory=list)
    wishlist: list[WishlistRecord] = field(default_factory=list)

    def owned_ids(self) -> set[str]:
        """Identifiers of owned items."""
        return {record.item_id for record in self.ownership}

    def wishlist_ids(self) -> set[str]:
        """Identifiers of wishlisted items."""
        return {record.item_id for record in self.wishlist}
