from enum import Enum


class CheckoutEvent(str, Enum):
    COUPON_APPLIED = "coupon_applied"
    COUPON_REMOVED = "coupon_removed"
    COUPON_INVALIDATED = "coupon_invalidated"
    ACTION_FAILED = "action_failed"

    ORDER_PLACED = "order_placed"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_CONFIRMATION_FAILED = "payment_confirmation_failed"

    ORDER_CANCELLED = "order_cancelled"
    ORDER_STATUS_UPDATED = "order_status_updated"
