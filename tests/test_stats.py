"""Tests for collection statistics."""

from decimal import Decimal

import pytest

from figureshelf.models.catalog import CatalogItem, Condition, OwnershipRecord
from figureshelf.services.stats import (
    NO_SERIES,
    collection_stats,
    percentage,
    series_progress,
)


@pytest.fixture
def catalog() -> list[CatalogItem]:
    return [
        CatalogItem(id="1", name="Mario", series="Super Mario"),
        CatalogItem(id="2", name="Luigi", series="Super Mario"),
        CatalogItem(id="3", name="Peach", series="Super Mario"),
        CatalogItem(id="4", name="Link", series="Zelda"),
        CatalogItem(id="5", name="Mystery"),
    ]


class TestPercentage:
    @pytest.mark.parametrize(
        ("part", "whole", "expected"),
        [(0, 0, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (5, 5, 100), (0, 7, 0)],
    )
    def test_rounds_half_up(self, part: int, whole: int, expected: int) -> None:
        assert percentage(part, whole) == expected


class TestCollectionStats:
    def test_counts(self, catalog: list[CatalogItem]) -> None:
        ownership = [
            OwnershipRecord(item_id="1", owner="u", is_boxed=True, value_paid=Decimal("100.00")),
            OwnershipRecord(
                item_id="4", owner="u", condition=Condition.USED, value_paid=Decimal("35.50")
            ),
            OwnershipRecord(item_id="5", owner="u", condition=Condition.USED),
        ]

        stats = collection_stats(catalog, ownership, {"2"})

        assert stats.total == 5
        assert stats.collected == 3
        assert stats.boxed == 1
        assert stats.wishlist == 1
        assert stats.percentage == 60
        assert stats.by_condition == {"new": 1, "used": 2, "damaged": 0}
        assert stats.total_value_paid == Decimal("135.50")

    def test_empty_collection(self) -> None:
        stats = collection_stats([], [], set())

        assert stats.percentage == 0
        assert stats.total_value_paid == Decimal("0")


class TestSeriesProgress:
    def test_largest_series_first(self, catalog: list[CatalogItem]) -> None:
        progress = series_progress(catalog, {"1", "2", "5"})

        assert [(s.name, s.total, s.collected, s.percentage) for s in progress] == [
            ("Super Mario", 3, 2, 67),
            (NO_SERIES, 1, 1, 100),
            ("Zelda", 1, 0, 0),
        ]
