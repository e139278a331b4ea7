from fastapi import APIRouter, Depends

from app.routes.cart import load_shipping_settings
from app.services.money import money_str
from app.services.shipping import format_shipping_cost
from app.services.shop_api import ShopApiClient
from app.session_context import get_shop_api


router = APIRouter()


@router.get("/settings")
def get_shipping_settings(api: ShopApiClient = Depends(get_shop_api)):
    settings, error = load_shipping_settings(api)

    # "unavailable" is a distinct state, never reported as free shipping
    if settings is None:
        return {
            "status": "unavailable",
            "message": error,
            "shipping_charge": None,
            "free_shipping_threshold": None,
            "is_active": None,
        }

    return {
        "status": "loaded",
        "shipping_charge": money_str(settings.shipping_charge),
        "free_shipping_threshold": money_str(settings.free_shipping_threshold),
        "is_active": settings.is_active,
        "formatted": {
            "shipping_charge": format_shipping_cost(settings.shipping_charge),
        },
    }
