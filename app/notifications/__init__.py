from .events import CheckoutEvent
from .dispatcher import dispatch_checkout_event

__all__ = [
    "CheckoutEvent",
    "dispatch_checkout_event",
]
