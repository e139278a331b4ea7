from typing import List, Optional

from sqlmodel import Session, select

from app.models.notifications import (
    Notification,
    NotificationLevel,
    RecipientRole,
)


def create_notification(
    *,
    session: Session,
    recipient_role: RecipientRole,
    session_id: Optional[str],
    user_id: Optional[str],
    trigger_source: str,
    related_id: Optional[str],
    title: str,
    content: str,
    level: NotificationLevel = NotificationLevel.info,
) -> Notification:
    notification = Notification(
        recipient_role=recipient_role,
        session_id=session_id,
        user_id=user_id,
        trigger_source=trigger_source,
        related_id=related_id,
        level=level,
        title=title,
        content=content,
    )
    session.add(notification)
    session.flush()
    return notification


def drain_notifications(session: Session, session_id: str) -> List[Notification]:
    """Unread toasts for a shopper session, oldest first; marks them read."""
    notifications = session.exec(
        select(Notification)
        .where(Notification.recipient_role == RecipientRole.customer)
        .where(Notification.session_id == session_id)
        .where(Notification.is_read == False)  # noqa: E712
        .order_by(Notification.created_at, Notification.id)
    ).all()

    for notification in notifications:
        notification.is_read = True
        session.add(notification)

    session.commit()
    for notification in notifications:
        session.refresh(notification)
    return notifications
