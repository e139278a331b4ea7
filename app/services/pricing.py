"""
Cart and checkout total aggregation.

Every monetary figure here comes from the shop API: the cart's gross total
and, when a coupon is applied, the coupon's ``final_amount``. The only
arithmetic performed locally is adding the shipping charge, and it is done
on ``Decimal`` values.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from app.schemas.cart_schemas import CartSummary
from app.schemas.checkout_schemas import CheckoutData
from app.schemas.coupon_schemas import AppliedCoupon
from app.schemas.shipping_schemas import ShippingSettings
from app.services.money import ZERO, format_money, money_str
from app.services.shipping import (
    ShippingQuote,
    format_shipping_cost,
    free_shipping_message,
    quote_shipping,
)

logger = logging.getLogger(__name__)


class ShippingUnavailableError(Exception):
    """Shipping settings are not known, so no grand total can be shown."""


class CouponConsistencyError(Exception):
    pass


@dataclass(frozen=True)
class PriceSummary:
    subtotal: Decimal
    discount: Decimal
    effective_amount: Decimal
    shipping: ShippingQuote
    grand_total: Optional[Decimal]
    currency: str
    coupon: Optional[AppliedCoupon] = None


def aggregate_totals(
    cart_summary: CartSummary,
    applied_coupon: Optional[AppliedCoupon],
    shipping_settings: Optional[ShippingSettings],
) -> PriceSummary:
    if applied_coupon is not None:
        effective_amount = applied_coupon.final_amount
        discount = applied_coupon.discount_amount
    else:
        effective_amount = cart_summary.total
        discount = ZERO

    shipping = quote_shipping(effective_amount, shipping_settings)

    grand_total = None
    if shipping.cost is not None:
        grand_total = effective_amount + shipping.cost

    return PriceSummary(
        subtotal=cart_summary.total,
        discount=discount,
        effective_amount=effective_amount,
        shipping=shipping,
        grand_total=grand_total,
        currency=cart_summary.currency,
        coupon=applied_coupon,
    )


def check_coupon_consistency(cart_total: Decimal, coupon: AppliedCoupon) -> None:
    """
    The apply response must satisfy final = cart total - discount.

    This is a check on the server's figures, not a recomputation: the
    displayed amounts are always the server's.
    """
    expected = cart_total - coupon.discount_amount
    if coupon.final_amount != expected:
        logger.warning(
            f"Coupon {coupon.coupon_code} returned final amount {coupon.final_amount}, "
            f"expected {expected} for cart total {cart_total}"
        )
        raise CouponConsistencyError(
            "The coupon could not be applied to the current cart total."
        )


def build_checkout_data(summary: PriceSummary) -> CheckoutData:
    if summary.grand_total is None:
        raise ShippingUnavailableError(
            "Shipping cost is still being calculated. Please try again."
        )

    coupon = summary.coupon
    return CheckoutData(
        subtotal=summary.subtotal,
        discount=summary.discount,
        coupon_code=coupon.coupon_code if coupon else None,
        coupon_id=coupon.coupon_id if coupon else None,
        shipping=summary.shipping.cost,
        total=summary.grand_total,
    )


def format_price_summary(summary: PriceSummary) -> dict:
    shipping = summary.shipping
    grand_total = summary.grand_total

    return {
        "subtotal": money_str(summary.subtotal),
        "discount": money_str(summary.discount),
        "effective_amount": money_str(summary.effective_amount),
        "shipping": money_str(shipping.cost),
        "shipping_status": shipping.status.value,
        "amount_needed_for_free_shipping": money_str(shipping.amount_needed),
        "grand_total": money_str(grand_total),
        "currency": summary.currency,
        "free_shipping_message": free_shipping_message(shipping),
        "formatted": {
            "subtotal": format_money(summary.subtotal),
            "discount": (
                f"-{format_money(summary.discount)}"
                if summary.discount > ZERO
                else format_money(ZERO)
            ),
            "effective_amount": format_money(summary.effective_amount),
            "shipping": format_shipping_cost(shipping.cost),
            "grand_total": (
                format_money(grand_total) if grand_total is not None else "Calculating..."
            ),
        },
    }


def format_checkout_data(data: CheckoutData) -> dict:
    return {
        "subtotal": money_str(data.subtotal),
        "discount": money_str(data.discount),
        "coupon_code": data.coupon_code,
        "coupon_id": data.coupon_id,
        "shipping": money_str(data.shipping),
        "total": money_str(data.total),
        "formatted": {
            "subtotal": format_money(data.subtotal),
            "discount": (
                f"-{format_money(data.discount)}" if data.discount > ZERO else format_money(ZERO)
            ),
            "shipping": format_shipping_cost(data.shipping),
            "total": format_money(data.total),
        },
    }
