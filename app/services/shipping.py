"""
Shipping cost rule.

Shipping settings are fetched from the shop API and may not be available
yet (still loading, or the fetch failed). That case is reported as
``ShippingStatus.unknown`` / ``None`` and is never folded into a zero charge,
so a free-shipping confirmation only appears once settings are known.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from app.schemas.shipping_schemas import ShippingSettings
from app.services.money import ZERO, format_money, to_decimal


class ShippingStatus(str, Enum):
    unknown = "unknown"
    free = "free"
    charged = "charged"


@dataclass(frozen=True)
class ShippingQuote:
    status: ShippingStatus
    cost: Optional[Decimal]
    amount_needed: Optional[Decimal]


def shipping_cost(amount, settings: Optional[ShippingSettings]) -> Optional[Decimal]:
    if settings is None:
        return None

    if not settings.is_active:
        return ZERO

    if to_decimal(amount) >= settings.free_shipping_threshold:
        return ZERO

    return settings.shipping_charge


def qualifies_for_free_shipping(amount, settings: Optional[ShippingSettings]) -> Optional[bool]:
    if settings is None:
        return None

    if not settings.is_active:
        return True

    return to_decimal(amount) >= settings.free_shipping_threshold


def amount_needed_for_free_shipping(amount, settings: Optional[ShippingSettings]) -> Optional[Decimal]:
    if settings is None:
        return None

    if not settings.is_active:
        return ZERO

    return max(ZERO, settings.free_shipping_threshold - to_decimal(amount))


def quote_shipping(amount, settings: Optional[ShippingSettings]) -> ShippingQuote:
    cost = shipping_cost(amount, settings)

    if cost is None:
        status = ShippingStatus.unknown
    elif cost == ZERO:
        status = ShippingStatus.free
    else:
        status = ShippingStatus.charged

    return ShippingQuote(
        status=status,
        cost=cost,
        amount_needed=amount_needed_for_free_shipping(amount, settings),
    )


def format_shipping_cost(cost: Optional[Decimal]) -> str:
    if cost is None:
        return "Calculating..."
    if cost == ZERO:
        return "FREE"
    return format_money(cost)


def free_shipping_message(quote: ShippingQuote) -> Optional[str]:
    if quote.status == ShippingStatus.unknown:
        return None

    if quote.status == ShippingStatus.free:
        return "You qualify for free shipping!"

    return f"Add {format_money(quote.amount_needed)} more for free shipping!"
