from fastapi import APIRouter, Depends, Request
from sqlmodel import Session, text
from datetime import datetime

from app.database import get_session

router = APIRouter()

@router.get("/check")
def health_check(request: Request, session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        # simple DB ping
        session.exec(text("SELECT 1"))
    except Exception:
        db_status = "failed"

    context = getattr(request.app.state, "session_context", None)

    return {
        "status": "ok",
        "database": db_status,
        "shop_api": "ready" if context is not None and context.ready else "not_initialised",
        "timestamp": datetime.utcnow().isoformat()
    }
