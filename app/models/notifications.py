from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


# ---------- ENUMS (SAFE FOR SQLMODEL) ----------

class RecipientRole(str, Enum):
    admin = "admin"
    customer = "customer"


class NotificationLevel(str, Enum):
    success = "success"
    info = "info"
    warning = "warning"
    error = "error"


# ---------- MODEL ----------

class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    recipient_role: RecipientRole
    session_id: Optional[str] = Field(default=None, index=True)
    user_id: Optional[str] = None

    trigger_source: str  # checkout event value
    related_id: Optional[str] = None  # order id, payment intent id or coupon id

    level: NotificationLevel = NotificationLevel.info
    title: str
    content: str

    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
