from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from app.constants.order_status import OrderStatus, can_update_to_status


class ShippingSettingsForm(BaseModel):
    shipping_charge: Decimal
    free_shipping_threshold: Decimal


def validate_shipping_settings_form(form: ShippingSettingsForm) -> List[str]:
    errors = []
    if form.shipping_charge < 0:
        errors.append("Shipping charge cannot be negative.")
    if form.free_shipping_threshold < 0:
        errors.append("Free shipping threshold cannot be negative.")
    return errors


class OrderStatusForm(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


def validate_order_status_form(form: OrderStatusForm, current_status: OrderStatus) -> List[str]:
    errors = []
    if not can_update_to_status(current_status, form.status):
        errors.append(
            f"Invalid status change from {current_status.value} → {form.status.value}"
        )
    return errors
