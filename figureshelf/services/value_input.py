"""
Sanitizers for user-typed values.

Values paid arrive as free text from a form field. Only non-negative numbers
are accepted, and a comma is read as the decimal separator.
"""

import re
from decimal import Decimal, InvalidOperation

from figureshelf.models.catalog import Condition
from figureshelf.models.failure import InvalidInputError

_AMOUNT_PATTERN = re.compile(r"^(\d{1,10}([.,]\d*)?|[.,]\d+)$")

CENTS = Decimal("0.01")

# Values are stored as Numeric(12, 2)
MAX_VALUE_PAID = Decimal("9999999999.99")


def parse_value_paid(text: str | None) -> Decimal | None:
    """
    Parse a value-paid field.

    Empty or missing text clears the value (returns None). "12,50", "12.5",
    "12" and ",5" are accepted; negatives, thousands separators, and anything
    non-numeric raise InvalidInputError.
    """
    if text is None:
        return None

    cleaned = text.strip()
    if not cleaned:
        return None

    if not _AMOUNT_PATTERN.match(cleaned):
        raise InvalidInputError(
            "Value paid must be a non-negative number.",
            detail=f"Rejected input: {text!r}",
        )

    try:
        amount = Decimal(cleaned.replace(",", ".")).quantize(CENTS)
    except InvalidOperation as e:
        raise InvalidInputError("Value paid must be a non-negative number.") from e

    if amount > MAX_VALUE_PAID:
        raise InvalidInputError(f"Value paid cannot exceed {MAX_VALUE_PAID}.")
    return amount


def parse_condition(value: Condition | str) -> Condition:
    """Coerce a condition name, raising InvalidInputError for unknown ones."""
    if isinstance(value, Condition):
        return value
    try:
        return Condition(value.strip().lower())
    except ValueError as e:
        allowed = ", ".join(c.value for c in Condition)
        raise InvalidInputError(f"Condition must be one of: {allowed}.") from e
