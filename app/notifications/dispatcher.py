import logging

from app.notifications.rules import EVENT_LEVELS, NOTIFICATION_RULES
from app.notifications.channels import Channel
from app.notifications.popup import popup
from app.services.notification_service import create_notification
from app.models.notifications import NotificationLevel, RecipientRole
from app.notifications.events import CheckoutEvent

logger = logging.getLogger(__name__)


def dispatch_checkout_event(
    *,
    event: CheckoutEvent,
    session,
    shopper=None,
    related_id: str | None = None,
    extra: dict | None = None,
) -> dict:
    """
    Central notification dispatcher.

    Handles:
    - popup payload returned with the response
    - toast queued for the shopper's session
    - admin in-app notification

    Returns the popup payload (empty dict when the event has no popup) so
    routes can merge it into their response.
    """

    rules = NOTIFICATION_RULES.get(event, {})
    extra = extra or {}
    level = EVENT_LEVELS.get(event, NotificationLevel.info)
    message = extra.get("message", "")

    response_popup = {}

    # -------------------------
    # USER POPUP
    # -------------------------
    if rules.get(Channel.POPUP_USER):
        response_popup = popup(message, level=level, title=extra.get("title"))

    # -------------------------
    # USER TOAST QUEUE
    # -------------------------
    if rules.get(Channel.TOAST_USER) and shopper is not None:
        create_notification(
            session=session,
            recipient_role=RecipientRole.customer,
            session_id=shopper.session_id,
            user_id=shopper.user_id,
            trigger_source=event.value,
            related_id=related_id,
            level=level,
            title=extra.get("title", ""),
            content=message,
        )

    # -------------------------
    # ADMIN IN-APP NOTIFICATION
    # -------------------------
    if rules.get(Channel.INAPP_ADMIN):
        create_notification(
            session=session,
            recipient_role=RecipientRole.admin,
            session_id=None,
            user_id=shopper.user_id if shopper else None,
            trigger_source=event.value,
            related_id=related_id,
            level=level,
            title=extra.get("admin_title", extra.get("title", "")),
            content=extra.get("admin_content", message),
        )

    session.commit()
    logger.info(f"Dispatched {event.value} (related_id={related_id})")

    return response_popup
