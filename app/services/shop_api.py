"""
Client for the shop's REST API.

The API owns pricing, VAT, coupon maths and order state; this client only
moves requests and responses. Every response uses the envelope
``{"success": bool, "data": ..., "message": str}`` and JSON numbers are
parsed as ``Decimal`` so no amount passes through a binary float.
"""
import json
import logging
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from app.schemas.cart_schemas import CartView
from app.schemas.checkout_schemas import PaymentIntent
from app.schemas.coupon_schemas import AppliedCoupon, Coupon
from app.schemas.shipping_schemas import ShippingSettings

logger = logging.getLogger(__name__)


class ShopApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _ttl_bucket(ttl: int) -> int:
    """Changes every ``ttl`` seconds, which forces a cache refresh."""
    return int(time.time() // ttl)


class ShopApiClient:
    def __init__(self, base_url: str, timeout: float = 10.0, shipping_settings_ttl: int = 600):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.shipping_settings_ttl = shipping_settings_ttl
        self.http = requests.Session()
        self.http.headers.update({"Accept": "application/json"})
        self._shipping_cache = None  # (bucket, ShippingSettings)

    def close(self) -> None:
        self.http.close()

    # ---------- transport ----------

    def _send(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{path}"
        body = None
        if payload is not None:
            headers["Content-Type"] = "application/json"
            body = json.dumps(payload, default=str)

        try:
            response = self.http.request(
                method,
                url,
                headers=headers,
                params=params,
                data=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Shop API {method} {path} failed: {e}")
            raise ShopApiError("The shop is temporarily unreachable. Please try again.")

        if 200 <= response.status_code < 300 and not response.content:
            # 204 No Content and other empty 2xx replies
            return {"success": True, "data": None}

        try:
            envelope = response.json(parse_float=Decimal)
        except ValueError:
            envelope = {}
        if not isinstance(envelope, dict):
            envelope = {}

        if response.status_code >= 400 or not envelope.get("success", False):
            message = envelope.get("message") or envelope.get("error") or response.reason or "Request failed"
            logger.warning(f"Shop API {method} {path} returned {response.status_code}: {message}")
            raise ShopApiError(message, status_code=response.status_code)

        return envelope

    def _request(self, method: str, path: str, **kwargs) -> Any:
        return self._send(method, path, **kwargs).get("data")

    def _request_page(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        envelope = self._send(method, path, **kwargs)
        return {
            "orders": envelope.get("data") or [],
            "pagination": envelope.get("pagination"),
        }

    # ---------- cart ----------

    def get_cart(self, token: str) -> CartView:
        return CartView.model_validate(self._request("GET", "/api/cart", token=token))

    def update_cart_item(self, token: str, item_id: str, quantity: int) -> CartView:
        data = self._request(
            "PATCH", f"/api/cart/items/{item_id}", token=token, payload={"quantity": quantity}
        )
        return CartView.model_validate(data)

    def remove_cart_item(self, token: str, item_id: str) -> CartView:
        return CartView.model_validate(
            self._request("DELETE", f"/api/cart/items/{item_id}", token=token)
        )

    def clear_cart(self, token: str) -> None:
        self._request("DELETE", "/api/cart", token=token)

    # ---------- shipping ----------

    def get_shipping_settings(self) -> ShippingSettings:
        bucket = _ttl_bucket(self.shipping_settings_ttl)
        if self._shipping_cache is not None and self._shipping_cache[0] == bucket:
            return self._shipping_cache[1]

        data = self._request("GET", "/api/orders/shipping/settings")
        if data is None:
            raise ShopApiError("Shipping settings are unavailable.")
        try:
            shipping_settings = ShippingSettings.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Shop API returned unusable shipping settings: {e}")
            raise ShopApiError("Shipping settings are unavailable.")

        self._shipping_cache = (bucket, shipping_settings)
        return shipping_settings

    def invalidate_shipping_settings(self) -> None:
        self._shipping_cache = None

    def update_shipping_settings(
        self, token: str, shipping_charge: Decimal, free_shipping_threshold: Decimal
    ) -> ShippingSettings:
        data = self._request(
            "PUT",
            "/api/orders/shipping/settings",
            token=token,
            payload={
                "shippingCharge": str(shipping_charge),
                "freeShippingThreshold": str(free_shipping_threshold),
            },
        )
        self.invalidate_shipping_settings()
        return ShippingSettings.model_validate(data)

    # ---------- coupons ----------

    def get_available_coupons(self, token: str) -> List[Coupon]:
        data = self._request("GET", "/api/coupons/available", token=token) or []
        # entries are user-coupon links; the coupon itself is nested
        return [
            Coupon.model_validate(entry["coupon"])
            for entry in data
            if entry.get("coupon") and not entry.get("isRedeemed", False)
        ]

    def apply_coupon(self, token: str, coupon_id: str, cart_total: Decimal) -> AppliedCoupon:
        data = self._request(
            "POST",
            "/api/coupons/apply",
            token=token,
            payload={"couponId": coupon_id, "cartTotal": str(cart_total)},
        )
        return AppliedCoupon.model_validate(data)

    # ---------- orders ----------

    def create_cod_order(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/orders/cod", token=token, payload=payload)

    def create_payment_intent(self, token: str, payload: Dict[str, Any]) -> PaymentIntent:
        data = self._request("POST", "/api/orders/payment-intent", token=token, payload=payload)
        return PaymentIntent.model_validate(data)

    def confirm_card_order(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/orders/confirm-stripe", token=token, payload=payload)

    def get_my_orders(self, token: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request_page("GET", "/api/orders/me", token=token, params=params)

    def get_order(self, token: str, order_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/orders/{order_id}", token=token)

    def cancel_order(self, token: str, order_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        payload = {"reason": reason} if reason else {}
        return self._request("POST", f"/api/orders/{order_id}/cancel", token=token, payload=payload)

    # ---------- admin ----------

    def get_all_orders(self, token: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request_page("GET", "/api/orders", token=token, params=params)

    def update_order_status(self, token: str, order_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/orders/{order_id}/status", token=token, payload=payload)
