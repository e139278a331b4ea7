"""Shared fixtures: in-memory database, a fake shop API and signed tokens."""

from __future__ import annotations

import os
import sys
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENV", "local")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import Session, SQLModel

from app.config import settings
from app.database import engine
from app.main import app
from app.schemas.cart_schemas import CartView
from app.schemas.checkout_schemas import PaymentIntent
from app.schemas.coupon_schemas import AppliedCoupon, Coupon
from app.schemas.shipping_schemas import ShippingSettings
from app.services.shop_api import ShopApiError
from app.session_context import get_shop_api


def make_token(user_id: str = "user-1", session_id: str = "sess-1", role: str | None = None) -> str:
    claims = {"sub": user_id, "sid": session_id}
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def auth_headers(**kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


def make_cart(total: str, items: int = 1) -> CartView:
    lines = [
        {
            "id": f"item-{i}",
            "quantity": 1,
            "itemTotal": total if i == 0 else "0.00",
            "bicycle": {"name": f"Bike {i}"},
        }
        for i in range(items)
    ]
    gross = Decimal(total)
    net = (gross / Decimal("1.2")).quantize(Decimal("0.01"))
    return CartView.model_validate(
        {
            "id": "cart-1",
            "items": lines,
            "summary": {
                "itemCount": items,
                "total": total,
                "netAmount": str(net),
                "vatAmount": str(gross - net),
                "currency": "GBP",
            },
        }
    )


class FakeShopApi:
    """In-process stand-in for ShopApiClient; records every call it receives."""

    def __init__(self):
        self.cart = make_cart("100.00")
        self.shipping = ShippingSettings(
            shipping_charge=Decimal("5.99"),
            free_shipping_threshold=Decimal("150.00"),
        )
        self.shipping_error: ShopApiError | None = None
        self.coupons: list[Coupon] = []
        self.applied: AppliedCoupon | None = None
        self.apply_error: ShopApiError | None = None
        self.intent: PaymentIntent | None = None
        self.order = {"id": "order-1", "orderNumber": "ORD-1", "status": "PENDING"}
        self.orders: dict[str, dict] = {}
        self.order_error: ShopApiError | None = None
        self.confirm_error: ShopApiError | None = None
        self.calls: list[tuple] = []

    def get_cart(self, token):
        self.calls.append(("get_cart",))
        return self.cart

    def update_cart_item(self, token, item_id, quantity):
        self.calls.append(("update_cart_item", item_id, quantity))
        return self.cart

    def remove_cart_item(self, token, item_id):
        self.calls.append(("remove_cart_item", item_id))
        return self.cart

    def get_shipping_settings(self):
        if self.shipping_error is not None:
            raise self.shipping_error
        return self.shipping

    def update_shipping_settings(self, token, shipping_charge, free_shipping_threshold):
        self.calls.append(("update_shipping_settings", shipping_charge, free_shipping_threshold))
        self.shipping = ShippingSettings(
            shipping_charge=shipping_charge,
            free_shipping_threshold=free_shipping_threshold,
        )
        return self.shipping

    def get_available_coupons(self, token):
        return self.coupons

    def apply_coupon(self, token, coupon_id, cart_total):
        self.calls.append(("apply_coupon", coupon_id, cart_total))
        if self.apply_error is not None:
            raise self.apply_error
        return self.applied

    def create_cod_order(self, token, payload):
        self.calls.append(("create_cod_order", payload))
        if self.order_error is not None:
            raise self.order_error
        return self.order

    def create_payment_intent(self, token, payload):
        self.calls.append(("create_payment_intent", payload))
        return self.intent

    def confirm_card_order(self, token, payload):
        self.calls.append(("confirm_card_order", payload))
        if self.confirm_error is not None:
            raise self.confirm_error
        return self.order

    def get_my_orders(self, token, params=None):
        return {"orders": list(self.orders.values()), "pagination": {"page": 1}}

    def get_order(self, token, order_id):
        if order_id not in self.orders:
            raise ShopApiError("Order not found", status_code=404)
        return self.orders[order_id]

    def cancel_order(self, token, order_id, reason=None):
        self.calls.append(("cancel_order", order_id, reason))
        return {**self.orders[order_id], "status": "CANCELLED"}

    def get_all_orders(self, token, params=None):
        self.calls.append(("get_all_orders", params))
        return {"orders": list(self.orders.values()), "pagination": {"page": 1}}

    def update_order_status(self, token, order_id, payload):
        self.calls.append(("update_order_status", order_id, payload))
        return {**self.orders[order_id], "status": payload["status"]}


@pytest.fixture(autouse=True)
def reset_database():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db_session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def shop_api():
    return FakeShopApi()


@pytest.fixture
def client(shop_api):
    app.dependency_overrides[get_shop_api] = lambda: shop_api
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
