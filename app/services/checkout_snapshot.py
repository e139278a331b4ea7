import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session

from app.config import settings
from app.models.checkout_snapshot import CheckoutSnapshot
from app.schemas.checkout_schemas import CheckoutData

logger = logging.getLogger(__name__)


def save_snapshot(
    session: Session,
    *,
    session_id: str,
    user_id: str,
    data: CheckoutData,
    now: Optional[datetime] = None,
) -> CheckoutSnapshot:
    """Store the cart's price breakdown; the latest "Proceed to Checkout" wins."""
    now = now or datetime.utcnow()
    expires_at = now + timedelta(minutes=settings.checkout_snapshot_ttl_minutes)

    snapshot = session.get(CheckoutSnapshot, session_id)
    if snapshot is None:
        snapshot = CheckoutSnapshot(session_id=session_id, user_id=user_id, expires_at=expires_at)

    snapshot.user_id = user_id
    snapshot.subtotal = data.subtotal
    snapshot.discount = data.discount
    snapshot.coupon_code = data.coupon_code
    snapshot.coupon_id = data.coupon_id
    snapshot.shipping = data.shipping
    snapshot.total = data.total
    snapshot.created_at = now
    snapshot.expires_at = expires_at

    session.add(snapshot)
    session.commit()
    session.refresh(snapshot)

    logger.info(f"Checkout snapshot saved for session {session_id}: total {data.total}")
    return snapshot


def load_snapshot(
    session: Session,
    session_id: str,
    now: Optional[datetime] = None,
) -> Optional[CheckoutData]:
    snapshot = session.get(CheckoutSnapshot, session_id)
    if snapshot is None:
        return None

    now = now or datetime.utcnow()
    if snapshot.expires_at <= now:
        logger.info(f"Checkout snapshot for session {session_id} expired at {snapshot.expires_at}")
        session.delete(snapshot)
        session.commit()
        return None

    return CheckoutData(
        subtotal=snapshot.subtotal,
        discount=snapshot.discount,
        coupon_code=snapshot.coupon_code,
        coupon_id=snapshot.coupon_id,
        shipping=snapshot.shipping,
        total=snapshot.total,
    )


def clear_snapshot(session: Session, session_id: str) -> bool:
    snapshot = session.get(CheckoutSnapshot, session_id)
    if snapshot is None:
        return False

    session.delete(snapshot)
    session.commit()
    logger.info(f"Checkout snapshot cleared for session {session_id}")
    return True
