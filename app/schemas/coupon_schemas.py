from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from app.schemas.api_base import ShopApiModel


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    FREE_SHIPPING = "FREE_SHIPPING"


class Coupon(ShopApiModel):
    id: str
    code: str
    name: str = ""
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal
    min_order_amount: Decimal = Decimal("0")
    valid_until: Optional[datetime] = None
    is_active: bool = True


class AppliedCoupon(ShopApiModel):
    """Result of a coupon apply call; every figure is the server's."""

    coupon_id: str
    coupon_code: str
    discount_amount: Decimal
    discount_type: DiscountType
    final_amount: Decimal


class ApplyCouponRequest(BaseModel):
    coupon_id: str
