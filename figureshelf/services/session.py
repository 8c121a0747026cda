"""
Client-side collection session.

Loads the catalog and one user's records once, keeps them in a
CollectionLedger, and runs the filter/sort/paginate pipeline locally.
"""

import asyncio
import logging
from dataclasses import dataclass, replace

from figureshelf.models.catalog import CatalogItem
from figureshelf.models.filters import DisplayPage, FilterState
from figureshelf.services.client import FigureShelfClient, HttpLedgerBackend
from figureshelf.services.ledger import CollectionLedger
from figureshelf.services.pipeline import build_display_page, filter_options
from figureshelf.services.stats import (
    CollectionStats,
    SeriesProgress,
    collection_stats,
    series_progress,
)

logger = logging.getLogger(__name__)


@dataclass
class CollectionSession:
    """
    One user's view of the catalog.

    The catalog is loaded once and never changes during the session; all
    mutations go through `ledger`.
    """

    catalog: list[CatalogItem]
    ledger: CollectionLedger

    def display(self, filters: FilterState) -> DisplayPage:
        """
        Compute the page for `filters`.

        A page past the end of the filtered results resets to page 1; the
        returned DisplayPage reports the page actually shown.
        """
        ownership = self.ledger.ownership
        wishlist = self.ledger.wishlist_ids()
        page = build_display_page(self.catalog, ownership, wishlist, filters)
        if page.page > page.total_pages:
            page = build_display_page(self.catalog, ownership, wishlist, replace(filters, page=1))
        return page

    def options(self) -> dict[str, list[str]]:
        return filter_options(self.catalog)

    def stats(self) -> CollectionStats:
        return collection_stats(
            self.catalog, self.ledger.ownership.values(), self.ledger.wishlist_ids()
        )

    def series(self) -> list[SeriesProgress]:
        return series_progress(self.catalog, self.ledger.owned_ids())


async def open_session(client: FigureShelfClient, user_id: str) -> CollectionSession:
    """
    Load the catalog, ownership, and wishlist concurrently.

    If any of the three fetches fails the whole load fails; no partial
    session is returned.
    """
    catalog, ownership, wishlist = await asyncio.gather(
        client.list_catalog(),
        client.list_ownership(user_id),
        client.list_wishlist(user_id),
    )
    logger.info(
        "Loaded %d catalog items, %d owned, %d wishlisted for %s",
        len(catalog),
        len(ownership),
        len(wishlist),
        user_id,
    )
    ledger = CollectionLedger(
        owner=user_id,
        backend=HttpLedgerBackend(client),
        ownership=ownership,
        wishlist=wishlist,
    )
    return CollectionSession(catalog=catalog, ledger=ledger)
