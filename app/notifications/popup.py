from app.models.notifications import NotificationLevel


def popup(message: str, level: NotificationLevel = NotificationLevel.info, title: str | None = None) -> dict:
    return {
        "popup": {
            "show": True,
            "level": level.value,
            "title": title,
            "message": message,
        }
    }
