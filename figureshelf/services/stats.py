"""
Collection statistics.

Summaries shown above the collection grid: totals, completion percentage,
boxed and wishlist counts, condition breakdown, money spent, and per-series
progress.
"""

from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from figureshelf.models.catalog import CatalogItem, Condition, OwnershipRecord

NO_SERIES = "No series"


@dataclass(frozen=True)
class SeriesProgress:
    """How much of one series a user owns."""

    name: str
    total: int
    collected: int
    percentage: int


@dataclass(frozen=True)
class CollectionStats:
    """Headline numbers for a user's collection."""

    total: int
    collected: int
    boxed: int
    wishlist: int
    percentage: int
    by_condition: dict[str, int] = field(default_factory=dict)
    total_value_paid: Decimal = Decimal("0")


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage, rounded half up; zero when `whole` is zero."""
    if whole <= 0:
        return 0
    return int((Decimal(part) * 100 / Decimal(whole)).to_integral_value(rounding=ROUND_HALF_UP))


def collection_stats(
    catalog: Collection[CatalogItem],
    ownership: Iterable[OwnershipRecord],
    wishlist: Collection[str],
) -> CollectionStats:
    """Compute headline statistics for one user."""
    records = list(ownership)
    by_condition = {condition.value: 0 for condition in Condition}
    total_value = Decimal("0")

    for record in records:
        by_condition[record.condition.value] += 1
        if record.value_paid is not None:
            total_value += record.value_paid

    return CollectionStats(
        total=len(catalog),
        collected=len(records),
        boxed=sum(1 for r in records if r.is_boxed),
        wishlist=len(wishlist),
        percentage=percentage(len(records), len(catalog)),
        by_condition=by_condition,
        total_value_paid=total_value,
    )


def series_progress(
    catalog: Iterable[CatalogItem],
    owned_ids: Collection[str],
) -> list[SeriesProgress]:
    """
    Per-series progress, largest series first.

    Items without a series are grouped under NO_SERIES. Ties on size are
    broken by name so the order is stable.
    """
    totals: dict[str, list[int]] = {}
    for item in catalog:
        counts = totals.setdefault(item.series or NO_SERIES, [0, 0])
        counts[0] += 1
        if item.id in owned_ids:
            counts[1] += 1

    progress = [
        SeriesProgress(
            name=name,
            total=total,
            collected=collected,
            percentage=percentage(collected, total),
        )
        for name, (total, collected) in totals.items()
    ]
    return sorted(progress, key=lambda s: (-s.total, s.name))
