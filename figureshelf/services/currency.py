"""
Currency conversion and formatting.

Values paid are stored in the reference currency (BRL by default) and
converted on demand for display. Exchange rates come from a public endpoint;
any failure falls back to hardcoded default rates without surfacing an error.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

import httpx

from figureshelf.config import settings

logger = logging.getLogger(__name__)


class Currency(str, Enum):
    BRL = "BRL"
    USD = "USD"
    EUR = "EUR"
    JPY = "JPY"


@dataclass(frozen=True)
class CurrencyConfig:
    """Display conventions for one currency."""

    code: Currency
    symbol: str
    locale: str
    name: str
    thousands_separator: str
    decimal_separator: str
    fraction_digits: int = 0


CURRENCIES: dict[Currency, CurrencyConfig] = {
    Currency.BRL: CurrencyConfig(Currency.BRL, "R$", "pt-BR", "Real Brasileiro", ".", ","),
    Currency.USD: CurrencyConfig(Currency.USD, "$", "en-US", "US Dollar", ",", "."),
    Currency.EUR: CurrencyConfig(Currency.EUR, "€", "de-DE", "Euro", ".", ","),
    Currency.JPY: CurrencyConfig(Currency.JPY, "¥", "ja-JP", "Japanese Yen", ",", "."),
}

DEFAULT_CURRENCY = Currency.BRL

# Units of each currency per 1 BRL, used when the rate endpoint is unreachable
DEFAULT_RATES: dict[Currency, Decimal] = {
    Currency.BRL: Decimal("1"),
    Currency.USD: Decimal("0.18"),
    Currency.EUR: Decimal("0.17"),
    Currency.JPY: Decimal("27.5"),
}


def resolve_currency(code: str | None) -> Currency:
    """Map a currency code to a supported Currency, defaulting to BRL."""
    if not code:
        return DEFAULT_CURRENCY
    try:
        return Currency(code.upper())
    except ValueError:
        return DEFAULT_CURRENCY


def format_currency(value: Decimal | float | int, currency: Currency) -> str:
    """
    Format an amount with the currency's symbol and separators.

    >>> format_currency(Decimal("1234.5"), Currency.BRL)
    'R$ 1.235'
    """
    config = CURRENCIES[currency]
    quantum = Decimal(1).scaleb(-config.fraction_digits)
    amount = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)

    sign = "-" if amount < 0 else ""
    whole, _, fraction = f"{abs(amount):f}".partition(".")
    grouped = f"{int(whole):,}".replace(",", config.thousands_separator)
    if fraction:
        grouped = f"{grouped}{config.decimal_separator}{fraction}"

    return f"{sign}{config.symbol} {grouped}"


class CurrencyConverter:
    """
    Converts reference-currency amounts using live rates.

    Rates are fetched lazily and cached for the converter's lifetime.
    """

    def __init__(
        self,
        base: Currency | None = None,
        rate_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base = base or resolve_currency(settings.reference_currency)
        self.rate_url = rate_url or settings.exchange_rate_url
        self.timeout = timeout
        self._rates: dict[Currency, Decimal] = {}

    async def fetch_rate(self, target: Currency) -> Decimal:
        """
        Get the rate from the base currency to `target`.

        Never raises: network, HTTP, and payload errors all fall back to the
        default rate.
        """
        if target == self.base:
            return Decimal("1")
        if target in self._rates:
            return self._rates[target]

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{self.rate_url}/{self.base.value}")
                response.raise_for_status()
                rates = response.json()["rates"]
                rate = Decimal(str(rates[target.value]))
        except (httpx.HTTPError, KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.debug("Exchange rate fetch failed, using default for %s: %s", target, e)
            rate = self._default_rate(target)

        self._rates[target] = rate
        return rate

    def _default_rate(self, target: Currency) -> Decimal:
        # DEFAULT_RATES is expressed per BRL; rebase when the base differs
        return DEFAULT_RATES[target] / DEFAULT_RATES[self.base]

    async def convert(self, amount: Decimal, target: Currency) -> Decimal:
        """Convert a base-currency amount into `target`."""
        rate = await self.fetch_rate(target)
        return amount * rate
