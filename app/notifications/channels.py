from enum import Enum


class Channel(str, Enum):
    POPUP_USER = "popup_user"
    TOAST_USER = "toast_user"
    INAPP_ADMIN = "inapp_admin"
