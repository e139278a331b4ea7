from decimal import Decimal

from app.schemas.api_base import ShopApiModel


class ShippingSettings(ShopApiModel):
    shipping_charge: Decimal
    free_shipping_threshold: Decimal
    is_active: bool = True
