"""
FigureShelf services.

Business logic for browsing the catalog and managing a collection.
"""

from figureshelf.services.currency import (
    CURRENCIES,
    Currency,
    CurrencyConverter,
    format_currency,
    resolve_currency,
)
from figureshelf.services.ledger import CollectionLedger, LedgerBackend
from figureshelf.services.pipeline import (
    build_display_page,
    filter_items,
    filter_options,
    paginate,
    sort_items,
)
from figureshelf.services.preferences import (
    DisplayPreferences,
    FilterPreferences,
    load_filter_preferences,
    load_page_size,
    resolve_display_preferences,
)
from figureshelf.services.stats import (
    CollectionStats,
    SeriesProgress,
    collection_stats,
    series_progress,
)
from figureshelf.services.value_input import parse_condition, parse_value_paid

__all__ = [
    # Pipeline
    "build_display_page",
    "filter_items",
    "filter_options",
    "paginate",
    "sort_items",
    # Ledger
    "CollectionLedger",
    "LedgerBackend",
    "parse_condition",
    "parse_value_paid",
    # Stats and formatting
    "CURRENCIES",
    "CollectionStats",
    "Currency",
    "CurrencyConverter",
    "SeriesProgress",
    "collection_stats",
    "format_currency",
    "resolve_currency",
    "series_progress",
    # Preferences
    "DisplayPreferences",
    "FilterPreferences",
    "load_filter_preferences",
    "load_page_size",
    "resolve_display_preferences",
]
