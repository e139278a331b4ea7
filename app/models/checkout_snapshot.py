from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class CheckoutSnapshot(SQLModel, table=True):
    session_id: str = Field(primary_key=True)
    user_id: str = Field(index=True)

    subtotal: Decimal = Field(max_digits=12, decimal_places=2)
    discount: Decimal = Field(max_digits=12, decimal_places=2)
    coupon_code: Optional[str] = None
    coupon_id: Optional[str] = None
    shipping: Decimal = Field(max_digits=12, decimal_places=2)
    total: Decimal = Field(max_digits=12, decimal_places=2)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: datetime
