"""
Display preferences and persisted filter selections.

Language, currency, and theme are carried as an explicit DisplayPreferences
object resolved per request and handed to whatever formats output. Nothing
here is global state; persistence is an explicit cookie write at the HTTP
boundary.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

from figureshelf.config import (
    ALLOWED_PAGE_SIZES,
    FILTER_PREFS_COOKIE,
    ITEMS_PER_PAGE_COOKIE,
    settings,
)
from figureshelf.models.catalog import Profile
from figureshelf.models.filters import ALL, SortDirection, SortKey, Visibility
from figureshelf.services.currency import Currency, resolve_currency

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("pt", "en", "es", "fr", "de", "ja")
DEFAULT_LANGUAGE = "pt"
THEMES = ("light", "dark", "system")
DEFAULT_THEME = "system"


@dataclass(frozen=True)
class DisplayPreferences:
    """How output should be presented to one user."""

    language: str = DEFAULT_LANGUAGE
    currency: Currency = Currency.BRL
    theme: str = DEFAULT_THEME


def resolve_display_preferences(
    profile: Profile | None,
    cookies: Mapping[str, str],
) -> DisplayPreferences:
    """
    Resolve preferences: profile first, then cookies, then defaults.

    Unsupported values fall through to the next source.
    """
    language = _first_supported(
        (profile.language if profile else None, cookies.get("language")),
        SUPPORTED_LANGUAGES,
        DEFAULT_LANGUAGE,
    )
    theme = _first_supported((cookies.get("theme"),), THEMES, DEFAULT_THEME)
    currency_code = (profile.currency if profile else None) or cookies.get("currency")

    return DisplayPreferences(
        language=language,
        currency=resolve_currency(currency_code),
        theme=theme,
    )


def _first_supported(
    candidates: tuple[str | None, ...], allowed: tuple[str, ...], default: str
) -> str:
    for candidate in candidates:
        if candidate and candidate.lower() in allowed:
            return candidate.lower()
    return default


# --- Page size ---


def load_page_size(cookies: Mapping[str, str]) -> int:
    """Items-per-page from its cookie, or the configured default."""
    raw = cookies.get(ITEMS_PER_PAGE_COOKIE)
    try:
        size = int(raw) if raw is not None else settings.default_page_size
    except ValueError:
        size = settings.default_page_size
    return size if size in ALLOWED_PAGE_SIZES else settings.default_page_size


# --- Filter selections ---


@dataclass(frozen=True)
class FilterPreferences:
    """Filter selections that survive reloads. Search text and page do not."""

    series: str = ALL
    type: str = ALL
    character: str = ALL
    visibility: Visibility = Visibility.ALL
    sort_key: SortKey = SortKey.NAME
    sort_direction: SortDirection = SortDirection.ASC

    def to_cookie(self) -> str:
        return json.dumps({k: _plain(v) for k, v in asdict(self).items()}, separators=(",", ":"))


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Visibility | SortKey | SortDirection) else value


def load_filter_preferences(cookies: Mapping[str, str]) -> FilterPreferences:
    """
    Read saved filter selections.

    A malformed cookie is ignored and defaults are returned.
    """
    raw = cookies.get(FILTER_PREFS_COOKIE)
    if not raw:
        return FilterPreferences()

    try:
        data = json.loads(raw)
        return FilterPreferences(
            series=str(data.get("series", ALL)),
            type=str(data.get("type", ALL)),
            character=str(data.get("character", ALL)),
            visibility=Visibility(data.get("visibility", Visibility.ALL.value)),
            sort_key=SortKey(data.get("sort_key", SortKey.NAME.value)),
            sort_direction=SortDirection(data.get("sort_direction", SortDirection.ASC.value)),
        )
    except (ValueError, AttributeError, TypeError) as e:
        logger.debug("Ignoring malformed filter preferences cookie: %s", e)
        return FilterPreferences()
