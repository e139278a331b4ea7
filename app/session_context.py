"""
Application-wide session context.

Created once at startup by the FastAPI lifespan and torn down at shutdown;
routes receive it through ``Depends(get_session_context)`` instead of
reaching for module globals.
"""
import logging
from typing import Optional

from fastapi import Depends, Request

from app.config import Settings
from app.services.in_flight import InFlightGuard
from app.services.shop_api import ShopApiClient

logger = logging.getLogger(__name__)


class SessionContext:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.shop_api: Optional[ShopApiClient] = None
        self.in_flight: Optional[InFlightGuard] = None

    @property
    def ready(self) -> bool:
        return self.shop_api is not None

    def init(self) -> "SessionContext":
        if self.ready:
            return self

        self.shop_api = ShopApiClient(
            self.settings.shop_api_base_url,
            timeout=self.settings.shop_api_timeout,
            shipping_settings_ttl=self.settings.shipping_settings_ttl,
        )
        self.in_flight = InFlightGuard()
        logger.info(f"Session context ready (shop API at {self.settings.shop_api_base_url})")
        return self

    def teardown(self) -> None:
        if self.shop_api is not None:
            self.shop_api.close()
        if self.in_flight is not None:
            self.in_flight.clear()
        self.shop_api = None
        self.in_flight = None
        logger.info("Session context closed")


def get_session_context(request: Request) -> SessionContext:
    context = getattr(request.app.state, "session_context", None)
    if context is None or not context.ready:
        raise RuntimeError("Session context has not been initialised")
    return context


def get_shop_api(context: SessionContext = Depends(get_session_context)) -> ShopApiClient:
    return context.shop_api


def get_in_flight_guard(context: SessionContext = Depends(get_session_context)) -> InFlightGuard:
    return context.in_flight
