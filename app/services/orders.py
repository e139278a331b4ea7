from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from app.constants.order_status import CANCELLABLE_STATUSES, OrderStatus, available_transitions
from app.schemas.checkout_schemas import DeliveryType
from app.services.money import ZERO, format_money, money_str, to_decimal


def _status(order: dict) -> Optional[OrderStatus]:
    try:
        return OrderStatus(order.get("status"))
    except ValueError:
        return None


def can_cancel_order(order: dict) -> bool:
    return _status(order) in CANCELLABLE_STATUSES


def format_order_status(status: str) -> str:
    return status.replace("_", " ")


def estimated_delivery_date(order_date: datetime, delivery_type: DeliveryType = DeliveryType.STANDARD) -> datetime:
    days = 2 if delivery_type == DeliveryType.EXPRESS else 5
    return order_date + timedelta(days=days)


def _parse_datetime(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _order_total(order: dict) -> Decimal:
    summary = order.get("summary") or {}
    value = summary.get("total", order.get("totalAmount"))
    if value is None:
        return ZERO
    return to_decimal(value)


def present_order(order: dict) -> dict:
    """Order as returned by the shop API, plus the storefront's display helpers."""
    status = _status(order)
    created_at = _parse_datetime(order.get("createdAt"))

    try:
        delivery_type = DeliveryType(order.get("deliveryType") or DeliveryType.STANDARD)
    except ValueError:
        delivery_type = DeliveryType.STANDARD

    estimated = None
    if created_at is not None:
        estimated = estimated_delivery_date(created_at, delivery_type).date().isoformat()

    return {
        **order,
        "status_label": format_order_status(order.get("status", "")),
        "can_cancel": can_cancel_order(order),
        "available_transitions": [s.value for s in available_transitions(status)] if status else [],
        "estimated_delivery": estimated,
    }


def calculate_order_statistics(orders: Iterable[dict]) -> dict:
    counts = {status: 0 for status in OrderStatus}
    total_orders = 0
    revenue = ZERO

    for order in orders:
        total_orders += 1
        status = _status(order)
        if status is None:
            continue
        counts[status] += 1
        # revenue only counts completed orders
        if status == OrderStatus.DELIVERED:
            revenue += _order_total(order)

    return {
        "total_orders": total_orders,
        "total_revenue": money_str(revenue),
        "total_revenue_formatted": format_money(revenue),
        **{f"{status.value.lower()}_orders": count for status, count in counts.items()},
    }
