from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from app.constants.order_status import OrderStatus
from app.database import get_session
from app.notifications import CheckoutEvent, dispatch_checkout_event
from app.services.orders import can_cancel_order, present_order
from app.services.shop_api import ShopApiClient, ShopApiError
from app.session_context import get_shop_api
from app.utils.errors import shop_api_http_error
from app.utils.token import Shopper, get_current_shopper


router = APIRouter()


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = None


@router.get("")
def list_my_orders(
    page: int = 1,
    limit: int = 10,
    status: OrderStatus | None = None,
    api: ShopApiClient = Depends(get_shop_api),
    shopper: Shopper = Depends(get_current_shopper),
):
    page = max(page, 1)
    limit = limit if limit >= 1 else 10

    params = {"page": page, "limit": limit}
    if status:
        params["status"] = status.value

    try:
        result = api.get_my_orders(shopper.token, params)
    except ShopApiError as e:
        raise shop_api_http_error(e)

    return {
        "results": [present_order(o) for o in result["orders"]],
        "pagination": result["pagination"],
    }


@router.get("/{order_id}")
def get_order(
    order_id: str,
    api: ShopApiClient = Depends(get_shop_api),
    shopper: Shopper = Depends(get_current_shopper),
):
    try:
        order = api.get_order(shopper.token, order_id)
    except ShopApiError as e:
        raise shop_api_http_error(e)

    if not order:
        raise HTTPException(404, "Order not found")

    return present_order(order)


@router.post("/{order_id}/cancel")
def cancel_order(
    order_id: str,
    data: CancelOrderRequest,
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    shopper: Shopper = Depends(get_current_shopper),
):
    try:
        order = api.get_order(shopper.token, order_id)
        if not order:
            raise HTTPException(404, "Order not found")

        if not can_cancel_order(order):
            raise HTTPException(409, f"Orders that are {order.get('status')} cannot be cancelled")

        cancelled = api.cancel_order(shopper.token, order_id, data.reason)
    except ShopApiError as e:
        raise shop_api_http_error(e)

    order_number = order.get("orderNumber") or order_id
    popup = dispatch_checkout_event(
        event=CheckoutEvent.ORDER_CANCELLED,
        session=session,
        shopper=shopper,
        related_id=order_id,
        extra={
            "title": "Order cancelled",
            "message": f"Order {order_number} has been cancelled.",
            "admin_title": "Order Cancelled",
            "admin_content": f"Order {order_number} cancelled by user {shopper.user_id}",
        },
    )

    return {"order": present_order(cancelled or {**order, "status": OrderStatus.CANCELLED.value}), **popup}
