from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class AppliedCouponRecord(SQLModel, table=True):
    """At most one coupon per shopper session; the session id is the key."""

    session_id: str = Field(primary_key=True)
    user_id: str = Field(index=True)

    coupon_id: str
    coupon_code: str
    discount_type: str
    discount_amount: Decimal = Field(max_digits=12, decimal_places=2)
    final_amount: Decimal = Field(max_digits=12, decimal_places=2)

    # gross cart total the server priced the coupon against
    cart_total: Decimal = Field(max_digits=12, decimal_places=2)

    applied_at: datetime = Field(default_factory=datetime.utcnow)
