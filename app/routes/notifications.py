from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.services.notification_service import drain_notifications
from app.utils.token import Shopper, get_current_shopper


router = APIRouter()


@router.get("")
def get_notifications(
    session: Session = Depends(get_session),
    shopper: Shopper = Depends(get_current_shopper),
):
    notifications = drain_notifications(session, shopper.session_id)

    return {
        "results": [
            {
                "id": n.id,
                "level": n.level,
                "title": n.title,
                "content": n.content,
                "trigger_source": n.trigger_source,
                "related_id": n.related_id,
                "created_at": n.created_at,
            }
            for n in notifications
        ]
    }
