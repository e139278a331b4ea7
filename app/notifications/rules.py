from app.models.notifications import NotificationLevel
from app.notifications.events import CheckoutEvent
from app.notifications.channels import Channel


NOTIFICATION_RULES = {

    CheckoutEvent.COUPON_APPLIED: {
        Channel.POPUP_USER: True,
    },

    CheckoutEvent.COUPON_REMOVED: {
        Channel.POPUP_USER: True,
    },

    CheckoutEvent.COUPON_INVALIDATED: {
        Channel.TOAST_USER: True,
    },

    CheckoutEvent.ACTION_FAILED: {
        Channel.POPUP_USER: True,
    },

    CheckoutEvent.ORDER_PLACED: {
        Channel.POPUP_USER: True,
        Channel.TOAST_USER: True,
        Channel.INAPP_ADMIN: True,
    },

    CheckoutEvent.PAYMENT_FAILED: {
        Channel.POPUP_USER: True,
    },

    CheckoutEvent.PAYMENT_CONFIRMATION_FAILED: {
        Channel.POPUP_USER: True,
        Channel.TOAST_USER: True,
        Channel.INAPP_ADMIN: True,
    },

    CheckoutEvent.ORDER_CANCELLED: {
        Channel.POPUP_USER: True,
        Channel.INAPP_ADMIN: True,
    },

    CheckoutEvent.ORDER_STATUS_UPDATED: {
        Channel.INAPP_ADMIN: True,
    },

}


EVENT_LEVELS = {
    CheckoutEvent.COUPON_APPLIED: NotificationLevel.success,
    CheckoutEvent.COUPON_REMOVED: NotificationLevel.info,
    CheckoutEvent.COUPON_INVALIDATED: NotificationLevel.warning,
    CheckoutEvent.ACTION_FAILED: NotificationLevel.error,
    CheckoutEvent.ORDER_PLACED: NotificationLevel.success,
    CheckoutEvent.PAYMENT_FAILED: NotificationLevel.error,
    CheckoutEvent.PAYMENT_CONFIRMATION_FAILED: NotificationLevel.error,
    CheckoutEvent.ORDER_CANCELLED: NotificationLevel.info,
    CheckoutEvent.ORDER_STATUS_UPDATED: NotificationLevel.info,
}
