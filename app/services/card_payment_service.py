import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlmodel import Session, select

from app.models.card_payment import CardPayment, CardPaymentStatus

logger = logging.getLogger(__name__)


def get_card_payment(session: Session, payment_intent_id: str) -> Optional[CardPayment]:
    return session.exec(
        select(CardPayment).where(CardPayment.payment_intent_id == payment_intent_id)
    ).first()


def record_payment_intent(
    session: Session,
    *,
    payment_intent_id: str,
    session_id: str,
    user_id: str,
    amount: Decimal,
    currency: str,
    coupon_code: Optional[str] = None,
) -> CardPayment:
    payment = get_card_payment(session, payment_intent_id)
    if payment is not None:
        # same intent handed out again by the provider
        return payment

    payment = CardPayment(
        payment_intent_id=payment_intent_id,
        session_id=session_id,
        user_id=user_id,
        amount=amount,
        currency=currency,
        coupon_code=coupon_code,
    )
    session.add(payment)
    session.commit()
    session.refresh(payment)
    return payment


def _set_status(
    session: Session,
    payment: CardPayment,
    status: CardPaymentStatus,
    *,
    order_id: Optional[str] = None,
    failure_reason: Optional[str] = None,
) -> CardPayment:
    payment.status = status
    if order_id is not None:
        payment.order_id = order_id
    payment.failure_reason = failure_reason
    payment.updated_at = datetime.utcnow()
    session.add(payment)
    session.commit()
    session.refresh(payment)
    return payment


def mark_confirmed(session: Session, payment: CardPayment, order_id: Optional[str]) -> CardPayment:
    return _set_status(session, payment, CardPaymentStatus.confirmed, order_id=order_id)


def mark_payment_failed(session: Session, payment: CardPayment, reason: Optional[str]) -> CardPayment:
    return _set_status(session, payment, CardPaymentStatus.payment_failed, failure_reason=reason)


def mark_confirmation_failed(session: Session, payment: CardPayment, reason: str) -> CardPayment:
    logger.error(
        f"Payment {payment.payment_intent_id} captured {payment.amount} {payment.currency} "
        f"but order confirmation failed: {reason}"
    )
    return _set_status(session, payment, CardPaymentStatus.confirmation_failed, failure_reason=reason)


def list_unconfirmed_payments(session: Session) -> List[CardPayment]:
    return session.exec(
        select(CardPayment)
        .where(CardPayment.status == CardPaymentStatus.confirmation_failed)
        .order_by(CardPayment.updated_at.desc())
    ).all()
