from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from app.config import settings

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """
    Parse a monetary value coming from the shop API.

    The API sends decimals as strings. Floats are routed through str() so
    that 10.1 becomes Decimal("10.1") rather than its binary expansion.
    """
    if value is None:
        raise ValueError("Monetary value is missing")

    if isinstance(value, Decimal):
        return value

    if isinstance(value, bool):
        raise ValueError(f"Invalid monetary value: {value!r}")

    if isinstance(value, float):
        value = str(value)

    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid monetary value: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Invalid monetary value: {value!r}")

    return amount


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, symbol: Optional[str] = None) -> str:
    symbol = settings.currency_symbol if symbol is None else symbol
    amount = quantize_money(to_decimal(amount))

    if amount < 0:
        return f"-{symbol}{-amount:,.2f}"
    return f"{symbol}{amount:,.2f}"


def money_str(amount: Optional[Decimal]) -> Optional[str]:
    """Wire form of an amount; decimals leave this service as strings."""
    if amount is None:
        return None
    return str(quantize_money(to_decimal(amount)))
