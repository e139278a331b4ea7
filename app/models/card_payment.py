from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum


class CardPaymentStatus(str, Enum):
    intent_created = "intent_created"
    confirmed = "confirmed"
    payment_failed = "payment_failed"
    confirmation_failed = "confirmation_failed"


class CardPayment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    payment_intent_id: str = Field(index=True, unique=True)
    session_id: str = Field(index=True)
    user_id: str = Field(index=True)

    amount: Decimal = Field(max_digits=12, decimal_places=2)
    currency: str
    coupon_code: Optional[str] = None

    status: CardPaymentStatus = Field(default=CardPaymentStatus.intent_created)
    order_id: Optional[str] = None
    failure_reason: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
