"""Money parsing and rounding helpers.

All ledger amounts are ``Decimal`` with two places. Amounts within
``EPSILON`` of each other are treated as equal.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from nasiya.exceptions import ValidationError

EPSILON = Decimal("0.01")
ZERO = Decimal("0.00")
CENT = Decimal("0.01")

_CURRENCY_MARKERS = re.compile(r"[$€£]|usd|uzs|so'm|som|sum", re.IGNORECASE)


def quantize(amount: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Decimal:
    """Parse a user-supplied amount into a two-place Decimal.

    Accepts ints, floats, Decimals and strings such as ``"1 200,50 $"`` or
    ``"1,200.50"``.

    Raises
    ------
    ValidationError
        If the value cannot be read as an amount.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValidationError(f"Invalid amount: {value!r}")
        return quantize(value)
    if isinstance(value, int):
        return quantize(Decimal(value))
    if isinstance(value, float):
        # str() avoids binary float artefacts (0.1 -> 0.1000000000000000055...)
        return to_money(str(value))

    text = _CURRENCY_MARKERS.sub("", str(value)).strip()
    text = text.replace(" ", "").replace(" ", "").replace("_", "")
    if not text:
        raise ValidationError(f"Invalid amount: {value!r}")

    if "," in text and "." in text:
        # Whichever separator comes last is the decimal separator
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        head, _, tail = text.rpartition(",")
        if len(tail) == 3 and head:
            text = text.replace(",", "")
        else:
            text = head.replace(",", "") + "." + tail

    try:
        amount = Decimal(text)
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return quantize(amount)


def is_zero(amount: Decimal, epsilon: Decimal = EPSILON) -> bool:
    """True when the amount is within epsilon of zero."""
    return abs(amount) <= epsilon


def format_money(amount: Decimal, currency: str = "$") -> str:
    """Human-readable amount for notes and messages."""
    return f"{quantize(amount):.2f} {currency}"


def convert_to_local(amount: Decimal, rate: Decimal) -> Decimal:
    """Convert a base-currency amount into local currency at ``rate``."""
    return quantize(amount * rate)


@dataclass(frozen=True)
class CurrencyDetails:
    """Cash actually handed over, split by currency.

    ``dollar`` is the base currency, ``sum`` the local currency.
    """

    dollar: Decimal = ZERO
    sum: Decimal = ZERO

    def base_total(self, rate: Decimal) -> Decimal:
        """Total expressed in base currency."""
        if rate <= 0:
            return self.dollar
        return quantize(self.dollar + self.sum / rate)
