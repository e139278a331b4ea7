import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.database import create_db_and_tables
from app.config import settings
from app.session_context import SessionContext
from app.routes import (
    admin,
    cart,
    checkout,
    health,
    notifications,
    orders,
    shipping,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()

    context = SessionContext(settings).init()
    app.state.session_context = context
    try:
        yield
    finally:
        context.teardown()
        app.state.session_context = None

app = FastAPI(title="Bike Shop Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(shipping.router, prefix="/shipping", tags=["Shipping"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "cart": [
            "/cart", "/cart/items/{item_id}", "/cart/coupons",
            "/cart/coupon", "/cart/checkout"
        ],
        "checkout": [
            "/checkout", "/checkout/cod", "/checkout/payment-intent",
            "/checkout/confirm-card", "/checkout/payment-failed"
        ],
        "shipping": ["/shipping/settings"],
        "orders": ["/orders", "/orders/{order_id}", "/orders/{order_id}/cancel"],
        "notifications": ["/notifications"],
        "admin": [
            "/admin/orders", "/admin/orders/{order_id}/status",
            "/admin/shipping/settings", "/admin/payments/unconfirmed",
            "/admin/notifications"
        ],
    }
