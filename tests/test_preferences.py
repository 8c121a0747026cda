"""Tests for display preferences and persisted filter selections."""

import json

from figureshelf.models.catalog import Profile
from figureshelf.models.filters import SortDirection, SortKey, Visibility
from figureshelf.services.currency import Currency
from figureshelf.services.preferences import (
    DisplayPreferences,
    FilterPreferences,
    load_filter_preferences,
    load_page_size,
    resolve_display_preferences,
)


class TestDisplayPreferences:
    def test_defaults(self) -> None:
        assert resolve_display_preferences(None, {}) == DisplayPreferences()

    def test_profile_wins_over_cookies(self) -> None:
        profile = Profile(user_id="u", language="en", currency="USD")

        prefs = resolve_display_preferences(profile, {"language": "es", "currency": "EUR"})

        assert prefs.language == "en"
        assert prefs.currency == Currency.USD

    def test_cookies_fill_gaps(self) -> None:
        profile = Profile(user_id="u")

        prefs = resolve_display_preferences(
            profile, {"language": "FR", "currency": "jpy", "theme": "dark"}
        )

        assert prefs == DisplayPreferences(language="fr", currency=Currency.JPY, theme="dark")

    def test_unsupported_values_fall_through(self) -> None:
        profile = Profile(user_id="u", language="tlh")

        prefs = resolve_display_preferences(profile, {"language": "de", "theme": "neon"})

        assert prefs.language == "de"
        assert prefs.theme == "system"


class TestPageSize:
    def test_missing_cookie_uses_default(self) -> None:
        assert load_page_size({}) == 20

    def test_allowed_value(self) -> None:
        assert load_page_size({"items_per_page": "100"}) == 100

    def test_invalid_values_use_default(self) -> None:
        assert load_page_size({"items_per_page": "25"}) == 20
        assert load_page_size({"items_per_page": "lots"}) == 20


class TestFilterPreferences:
    def test_cookie_round_trip(self) -> None:
        prefs = FilterPreferences(
            series="Super Mario",
            visibility=Visibility.MISSING,
            sort_key=SortKey.RELEASE_EU,
            sort_direction=SortDirection.DESC,
        )

        assert load_filter_preferences({"filter_prefs": prefs.to_cookie()}) == prefs

    def test_cookie_is_compact_json(self) -> None:
        cookie = FilterPreferences().to_cookie()

        assert " " not in cookie
        assert json.loads(cookie)["visibility"] == "all"

    def test_partial_cookie_fills_defaults(self) -> None:
        prefs = load_filter_preferences({"filter_prefs": '{"character":"Link"}'})

        assert prefs.character == "Link"
        assert prefs.sort_key == SortKey.NAME

    def test_malformed_cookies_are_ignored(self) -> None:
        for raw in ("{not json", "[1, 2]", '{"visibility": "owned"}', '{"sort_key": null}'):
            assert load_filter_preferences({"filter_prefs": raw}) == FilterPreferences()
