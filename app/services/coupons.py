"""Coupon eligibility and the per-session applied-coupon slot."""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlmodel import Session

from app.models.applied_coupon import AppliedCouponRecord
from app.schemas.coupon_schemas import AppliedCoupon, Coupon
from app.services.money import ZERO, format_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponOption:
    coupon: Coupon
    eligible: bool
    shortfall: Decimal
    message: Optional[str]


def _is_expired(coupon: Coupon, now: datetime) -> bool:
    if coupon.valid_until is None:
        return False
    valid_until = coupon.valid_until
    if valid_until.tzinfo is None:
        valid_until = valid_until.replace(tzinfo=timezone.utc)
    return valid_until < now


def coupon_option(coupon: Coupon, cart_total, now: Optional[datetime] = None) -> CouponOption:
    now = now or datetime.now(timezone.utc)
    cart_total = to_decimal(cart_total)
    shortfall = max(ZERO, coupon.min_order_amount - cart_total)

    if not coupon.is_active:
        return CouponOption(coupon, False, shortfall, "This coupon is not active.")

    if _is_expired(coupon, now):
        return CouponOption(coupon, False, shortfall, "This coupon has expired.")

    if shortfall > ZERO:
        return CouponOption(
            coupon,
            False,
            shortfall,
            f"Add {format_money(shortfall)} more to use this coupon.",
        )

    return CouponOption(coupon, True, ZERO, None)


def list_coupon_options(coupons: List[Coupon], cart_total, now: Optional[datetime] = None) -> List[CouponOption]:
    return [coupon_option(c, cart_total, now) for c in coupons]


# ---------- applied coupon slot ----------

def get_applied_coupon(session: Session, session_id: str) -> Optional[AppliedCouponRecord]:
    return session.get(AppliedCouponRecord, session_id)


def current_coupon(session: Session, session_id: str, cart_total: Decimal) -> Optional[AppliedCoupon]:
    """
    The applied coupon, if it still matches the cart it was priced for.

    A coupon's final amount was computed by the server for one specific cart
    total; once the cart changes that figure is stale and the slot is cleared.
    """
    record = get_applied_coupon(session, session_id)
    if record is None:
        return None

    if record.cart_total != cart_total:
        logger.info(
            f"Dropping coupon {record.coupon_code} for session {session_id}: "
            f"cart total moved from {record.cart_total} to {cart_total}"
        )
        session.delete(record)
        session.commit()
        return None

    return AppliedCoupon(
        coupon_id=record.coupon_id,
        coupon_code=record.coupon_code,
        discount_amount=record.discount_amount,
        discount_type=record.discount_type,
        final_amount=record.final_amount,
    )


def save_applied_coupon(
    session: Session,
    *,
    session_id: str,
    user_id: str,
    coupon: AppliedCoupon,
    cart_total: Decimal,
) -> AppliedCouponRecord:
    record = get_applied_coupon(session, session_id)
    if record is None:
        record = AppliedCouponRecord(
            session_id=session_id,
            user_id=user_id,
            coupon_id=coupon.coupon_id,
            coupon_code=coupon.coupon_code,
            discount_type=coupon.discount_type.value,
            discount_amount=coupon.discount_amount,
            final_amount=coupon.final_amount,
            cart_total=cart_total,
        )
    else:
        record.coupon_id = coupon.coupon_id
        record.coupon_code = coupon.coupon_code
        record.discount_type = coupon.discount_type.value
        record.discount_amount = coupon.discount_amount
        record.final_amount = coupon.final_amount
        record.cart_total = cart_total
        record.applied_at = datetime.utcnow()

    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def remove_applied_coupon(session: Session, session_id: str) -> bool:
    record = get_applied_coupon(session, session_id)
    if record is None:
        return False

    session.delete(record)
    session.commit()
    return True
