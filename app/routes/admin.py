import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.constants.order_status import OrderStatus
from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.notifications import Notification, RecipientRole
from app.notifications import CheckoutEvent, dispatch_checkout_event
from app.schemas.admin_schemas import (
    OrderStatusForm,
    ShippingSettingsForm,
    validate_order_status_form,
    validate_shipping_settings_form,
)
from app.services.card_payment_service import list_unconfirmed_payments
from app.services.money import format_money, money_str
from app.services.orders import calculate_order_statistics, present_order
from app.services.shop_api import ShopApiClient, ShopApiError
from app.session_context import get_shop_api
from app.utils.errors import shop_api_http_error
from app.utils.pagination import paginate
from app.utils.token import Shopper

logger = logging.getLogger(__name__)

router = APIRouter()


# -------- ORDERS --------

@router.get("/orders")
def list_orders(
    page: int = 1,
    limit: int = 10,
    status: OrderStatus | None = None,
    search: str | None = None,
    api: ShopApiClient = Depends(get_shop_api),
    admin: Shopper = Depends(require_admin),
):
    params = {"page": max(page, 1), "limit": limit if limit >= 1 else 10}
    if status:
        params["status"] = status.value
    if search:
        params["search"] = search

    try:
        result = api.get_all_orders(admin.token, params)
    except ShopApiError as e:
        raise shop_api_http_error(e)

    orders = result["orders"]
    return {
        "results": [present_order(o) for o in orders],
        "pagination": result["pagination"],
        "statistics": calculate_order_statistics(orders),
    }


@router.patch("/orders/{order_id}/status")
def update_order_status(
    order_id: str,
    form: OrderStatusForm,
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    admin: Shopper = Depends(require_admin),
):
    try:
        order = api.get_order(admin.token, order_id)
    except ShopApiError as e:
        raise shop_api_http_error(e)

    if not order:
        raise HTTPException(404, "Order not found")

    try:
        current_status = OrderStatus(order.get("status"))
    except ValueError:
        raise HTTPException(400, f"Order has unknown status {order.get('status')}")

    errors = validate_order_status_form(form, current_status)
    if errors:
        raise HTTPException(400, detail={"errors": errors})

    payload = {"status": form.status.value}
    if form.tracking_number:
        payload["trackingNumber"] = form.tracking_number
    if form.notes:
        payload["notes"] = form.notes

    try:
        updated = api.update_order_status(admin.token, order_id, payload)
    except ShopApiError as e:
        raise shop_api_http_error(e)

    order_number = order.get("orderNumber") or order_id
    dispatch_checkout_event(
        event=CheckoutEvent.ORDER_STATUS_UPDATED,
        session=session,
        shopper=admin,
        related_id=order_id,
        extra={
            "title": f"Order {form.status.value.title()}",
            "message": f"Order {order_number}: {current_status.value} → {form.status.value}",
        },
    )

    return {
        "message": "Order status updated",
        "order": present_order(updated or {**order, "status": form.status.value}),
    }


# -------- SHIPPING SETTINGS --------

@router.put("/shipping/settings")
def update_shipping_settings(
    form: ShippingSettingsForm,
    api: ShopApiClient = Depends(get_shop_api),
    admin: Shopper = Depends(require_admin),
):
    errors = validate_shipping_settings_form(form)
    if errors:
        raise HTTPException(422, detail={"errors": errors})

    try:
        settings = api.update_shipping_settings(
            admin.token, form.shipping_charge, form.free_shipping_threshold
        )
    except ShopApiError as e:
        raise shop_api_http_error(e)

    logger.info(
        f"Shipping settings updated by {admin.user_id}: charge {settings.shipping_charge}, "
        f"free over {settings.free_shipping_threshold}"
    )

    return {
        "message": "Shipping settings updated successfully",
        "data": {
            "shipping_charge": money_str(settings.shipping_charge),
            "free_shipping_threshold": money_str(settings.free_shipping_threshold),
            "is_active": settings.is_active,
        },
    }


# -------- PAYMENTS --------

@router.get("/payments/unconfirmed")
def unconfirmed_payments(
    session: Session = Depends(get_session),
    admin: Shopper = Depends(require_admin),
):
    payments = list_unconfirmed_payments(session)
    return {
        "results": [
            {
                "payment_intent_id": p.payment_intent_id,
                "user_id": p.user_id,
                "amount": money_str(p.amount),
                "amount_formatted": format_money(p.amount),
                "currency": p.currency,
                "coupon_code": p.coupon_code,
                "failure_reason": p.failure_reason,
                "updated_at": p.updated_at,
            }
            for p in payments
        ]
    }


# -------- NOTIFICATIONS --------

@router.get("/notifications")
def admin_notifications(
    page: int = 1,
    limit: int = 20,
    session: Session = Depends(get_session),
    admin: Shopper = Depends(require_admin),
):
    query = (
        select(Notification)
        .where(Notification.recipient_role == RecipientRole.admin)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )

    data = paginate(session=session, query=query, page=page, limit=limit)
    data["results"] = [
        {
            "id": n.id,
            "level": n.level,
            "title": n.title,
            "content": n.content,
            "trigger_source": n.trigger_source,
            "related_id": n.related_id,
            "user_id": n.user_id,
            "created_at": n.created_at,
        }
        for n in data["results"]
    ]
    return data
