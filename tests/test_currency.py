"""Tests for currency conversion and formatting."""

from decimal import Decimal

import httpx
import pytest
import respx

from figureshelf.config import settings
from figureshelf.services.currency import (
    DEFAULT_RATES,
    Currency,
    CurrencyConverter,
    format_currency,
    resolve_currency,
)

RATES_URL = f"{settings.exchange_rate_url}/BRL"


class TestFormatCurrency:
    @pytest.mark.parametrize(
        ("value", "currency", "expected"),
        [
            (Decimal("1234.5"), Currency.BRL, "R$ 1.235"),
            (Decimal("1234567"), Currency.USD, "$ 1,234,567"),
            (Decimal("1234567"), Currency.EUR, "€ 1.234.567"),
            (Decimal("0.4"), Currency.JPY, "¥ 0"),
            (0, Currency.BRL, "R$ 0"),
            (Decimal("-1234.5"), Currency.USD, "-$ 1,235"),
            (19.99, Currency.USD, "$ 20"),
        ],
    )
    def test_format(self, value, currency: Currency, expected: str) -> None:
        assert format_currency(value, currency) == expected


class TestResolveCurrency:
    def test_known_code_any_case(self) -> None:
        assert resolve_currency("usd") == Currency.USD
        assert resolve_currency("JPY") == Currency.JPY

    def test_missing_or_unknown_defaults_to_brl(self) -> None:
        assert resolve_currency(None) == Currency.BRL
        assert resolve_currency("") == Currency.BRL
        assert resolve_currency("GBP") == Currency.BRL


class TestCurrencyConverter:
    @respx.mock
    async def test_fetches_live_rate(self) -> None:
        respx.get(RATES_URL).mock(
            return_value=httpx.Response(200, json={"rates": {"USD": 0.19, "EUR": 0.16}})
        )
        converter = CurrencyConverter()

        assert await converter.fetch_rate(Currency.USD) == Decimal("0.19")
        assert await converter.convert(Decimal("100"), Currency.EUR) == Decimal("16.00")

    @respx.mock
    async def test_rates_are_cached(self) -> None:
        route = respx.get(RATES_URL).mock(
            return_value=httpx.Response(200, json={"rates": {"USD": 0.19}})
        )
        converter = CurrencyConverter()

        await converter.fetch_rate(Currency.USD)
        await converter.fetch_rate(Currency.USD)

        assert route.call_count == 1

    @respx.mock
    async def test_same_currency_needs_no_request(self) -> None:
        route = respx.get(RATES_URL)
        converter = CurrencyConverter()

        assert await converter.fetch_rate(Currency.BRL) == Decimal("1")
        assert not route.called

    @respx.mock
    async def test_http_error_falls_back_to_default(self) -> None:
        respx.get(RATES_URL).mock(return_value=httpx.Response(500))
        converter = CurrencyConverter()

        assert await converter.fetch_rate(Currency.USD) == DEFAULT_RATES[Currency.USD]

    @respx.mock
    async def test_network_error_falls_back_to_default(self) -> None:
        respx.get(RATES_URL).mock(side_effect=httpx.ConnectError("unreachable"))
        converter = CurrencyConverter()

        assert await converter.fetch_rate(Currency.JPY) == DEFAULT_RATES[Currency.JPY]

    @respx.mock
    async def test_missing_rate_falls_back_to_default(self) -> None:
        respx.get(RATES_URL).mock(return_value=httpx.Response(200, json={"rates": {}}))
        converter = CurrencyConverter()

        assert await converter.fetch_rate(Currency.EUR) == DEFAULT_RATES[Currency.EUR]

    @respx.mock
    async def test_default_rates_rebase_to_other_base(self) -> None:
        respx.get(f"{settings.exchange_rate_url}/USD").mock(return_value=httpx.Response(500))
        converter = CurrencyConverter(base=Currency.USD)

        rate = await converter.fetch_rate(Currency.BRL)

        assert rate == DEFAULT_RATES[Currency.BRL] / DEFAULT_RATES[Currency.USD]
