# app/schemas/checkout_schemas.py
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.api_base import ShopApiModel


class CheckoutData(BaseModel):
    """Price breakdown carried from the cart page to the checkout page."""

    subtotal: Decimal         # gross cart total before any coupon
    discount: Decimal         # server-returned discount, 0 without a coupon
    coupon_code: Optional[str] = None
    coupon_id: Optional[str] = None
    shipping: Decimal
    total: Decimal            # grand total shown next to "Proceed to Checkout"


class DeliveryType(str, Enum):
    STANDARD = "STANDARD"
    EXPRESS = "EXPRESS"


class CheckoutForm(BaseModel):
    shipping_address_id: Optional[str] = None
    billing_address_id: Optional[str] = None
    delivery_type: DeliveryType = DeliveryType.STANDARD
    scheduled_time: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=500)


def validate_checkout_form(form: CheckoutForm, now: Optional[datetime] = None) -> List[str]:
    """
    Single validation pass for the checkout form.

    Billing falls back to the shipping address, matching the storefront's
    "same as shipping" default.
    """
    errors = []

    if not form.shipping_address_id:
        errors.append("Please select a shipping address.")
    elif not form.billing_address_id:
        form.billing_address_id = form.shipping_address_id

    if form.scheduled_time is not None:
        now = now or datetime.now(timezone.utc)
        scheduled = form.scheduled_time
        if scheduled.tzinfo is None:
            scheduled = scheduled.replace(tzinfo=timezone.utc)
        if scheduled < now:
            errors.append("Scheduled delivery time cannot be in the past.")

    return errors


class ConfirmCardPaymentForm(CheckoutForm):
    payment_intent_id: str


class PaymentFailedReport(BaseModel):
    payment_intent_id: str
    reason: Optional[str] = None


class PriceBreakdown(ShopApiModel):
    subtotal: Decimal
    discount: Decimal = Decimal("0")
    shipping_cost: Decimal = Decimal("0")
    net_amount: Optional[Decimal] = None
    vat_amount: Optional[Decimal] = None
    total: Decimal
    currency: str = "GBP"


class PaymentIntent(ShopApiModel):
    client_secret: str
    payment_intent_id: str
    amount: Decimal
    currency: str
    breakdown: Optional[PriceBreakdown] = None
