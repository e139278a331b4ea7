import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.database import get_session
from app.notifications import CheckoutEvent, dispatch_checkout_event
from app.schemas.cart_schemas import CartUpdateRequest, CartView
from app.schemas.coupon_schemas import AppliedCoupon, ApplyCouponRequest
from app.schemas.shipping_schemas import ShippingSettings
from app.services.checkout_snapshot import save_snapshot
from app.services.coupons import (
    current_coupon,
    get_applied_coupon,
    list_coupon_options,
    coupon_option,
    remove_applied_coupon,
    save_applied_coupon,
)
from app.services.in_flight import InFlightError, InFlightGuard, cart_item_key, coupon_slot_key
from app.services.money import format_money, money_str
from app.services.pricing import (
    CouponConsistencyError,
    ShippingUnavailableError,
    aggregate_totals,
    build_checkout_data,
    check_coupon_consistency,
    format_checkout_data,
    format_price_summary,
)
from app.services.shop_api import ShopApiClient, ShopApiError
from app.session_context import get_in_flight_guard, get_shop_api
from app.utils.errors import shop_api_http_error
from app.utils.token import Shopper, get_current_shopper

logger = logging.getLogger(__name__)

router = APIRouter()


def load_shipping_settings(api: ShopApiClient) -> Tuple[Optional[ShippingSettings], Optional[str]]:
    """Shipping settings, or the reason they are unavailable."""
    try:
        return api.get_shipping_settings(), None
    except ShopApiError as e:
        logger.warning(f"Shipping settings unavailable: {e.message}")
        return None, e.message


def _fetch_cart(api: ShopApiClient, shopper: Shopper) -> CartView:
    try:
        return api.get_cart(shopper.token)
    except ShopApiError as e:
        raise shop_api_http_error(e)


def resolve_coupon(session: Session, shopper: Shopper, cart: CartView) -> Optional[AppliedCoupon]:
    """The applied coupon for this cart; a stale one is dropped and the shopper is told."""
    previous = get_applied_coupon(session, shopper.session_id)
    previous_code = previous.coupon_code if previous else None
    previous_id = previous.coupon_id if previous else None

    coupon = current_coupon(session, shopper.session_id, cart.summary.total)

    if previous_code and coupon is None:
        dispatch_checkout_event(
            event=CheckoutEvent.COUPON_INVALIDATED,
            session=session,
            shopper=shopper,
            related_id=previous_id,
            extra={
                "title": "Coupon removed",
                "message": f"Your cart changed, so coupon {previous_code} was removed. Please apply it again.",
            },
        )

    return coupon


def build_cart_response(
    session: Session,
    shopper: Shopper,
    api: ShopApiClient,
    cart: CartView,
) -> dict:
    coupon = resolve_coupon(session, shopper, cart)
    shipping_settings, shipping_error = load_shipping_settings(api)
    summary = aggregate_totals(cart.summary, coupon, shipping_settings)

    return {
        "items": [
            {
                "item_id": line.id,
                "name": line.name,
                "quantity": line.quantity,
                "item_total": money_str(line.item_total),
                "item_total_formatted": format_money(line.item_total),
            }
            for line in cart.items
        ],
        "cart": {
            "item_count": cart.summary.item_count,
            "net_amount": money_str(cart.summary.net_amount),
            "vat_amount": money_str(cart.summary.vat_amount),
            "total": money_str(cart.summary.total),
            "currency": cart.summary.currency,
        },
        "applied_coupon": (
            {
                "coupon_id": coupon.coupon_id,
                "coupon_code": coupon.coupon_code,
                "discount_type": coupon.discount_type.value,
                "discount_amount": money_str(coupon.discount_amount),
                "final_amount": money_str(coupon.final_amount),
            }
            if coupon
            else None
        ),
        "summary": format_price_summary(summary),
        "shipping_error": shipping_error,
        "can_checkout": bool(cart.items) and summary.grand_total is not None,
    }


# View Cart

@router.get("")
def get_cart(
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    shopper: Shopper = Depends(get_current_shopper),
):
    cart = _fetch_cart(api, shopper)
    return build_cart_response(session, shopper, api, cart)


# Update Cart

@router.patch("/items/{item_id}")
def update_cart_item(
    item_id: str,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    guard: InFlightGuard = Depends(get_in_flight_guard),
    shopper: Shopper = Depends(get_current_shopper),
):
    try:
        with guard.hold(cart_item_key(shopper.session_id, item_id)):
            cart = api.update_cart_item(shopper.token, item_id, data.quantity)
    except InFlightError:
        raise HTTPException(409, "This item is already being updated.")
    except ShopApiError as e:
        raise shop_api_http_error(e)

    return build_cart_response(session, shopper, api, cart)


# Remove Cart

@router.delete("/items/{item_id}")
def remove_cart_item(
    item_id: str,
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    guard: InFlightGuard = Depends(get_in_flight_guard),
    shopper: Shopper = Depends(get_current_shopper),
):
    try:
        with guard.hold(cart_item_key(shopper.session_id, item_id)):
            cart = api.remove_cart_item(shopper.token, item_id)
    except InFlightError:
        raise HTTPException(409, "This item is already being updated.")
    except ShopApiError as e:
        raise shop_api_http_error(e)

    return build_cart_response(session, shopper, api, cart)


# Coupons

@router.get("/coupons")
def list_coupons(
    api: ShopApiClient = Depends(get_shop_api),
    shopper: Shopper = Depends(get_current_shopper),
):
    cart = _fetch_cart(api, shopper)
    try:
        coupons = api.get_available_coupons(shopper.token)
    except ShopApiError as e:
        raise shop_api_http_error(e)

    return {
        "cart_total": money_str(cart.summary.total),
        "coupons": [
            {
                "coupon_id": option.coupon.id,
                "code": option.coupon.code,
                "name": option.coupon.name,
                "discount_type": option.coupon.discount_type.value,
                "discount_value": money_str(option.coupon.discount_value),
                "min_order_amount": money_str(option.coupon.min_order_amount),
                "eligible": option.eligible,
                "shortfall": money_str(option.shortfall),
                "message": option.message,
            }
            for option in list_coupon_options(coupons, cart.summary.total)
        ],
    }


@router.post("/coupon")
def apply_coupon(
    data: ApplyCouponRequest,
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    guard: InFlightGuard = Depends(get_in_flight_guard),
    shopper: Shopper = Depends(get_current_shopper),
):
    try:
        with guard.hold(coupon_slot_key(shopper.session_id)):
            cart = api.get_cart(shopper.token)
            coupons = api.get_available_coupons(shopper.token)

            coupon = next((c for c in coupons if c.id == data.coupon_id), None)
            if coupon is None:
                raise HTTPException(404, "Coupon not found")

            option = coupon_option(coupon, cart.summary.total)
            if not option.eligible:
                raise HTTPException(422, option.message)

            applied = api.apply_coupon(shopper.token, coupon.id, cart.summary.total)
            check_coupon_consistency(cart.summary.total, applied)
    except InFlightError:
        raise HTTPException(409, "A coupon is already being applied.")
    except CouponConsistencyError as e:
        popup = dispatch_checkout_event(
            event=CheckoutEvent.ACTION_FAILED,
            session=session,
            shopper=shopper,
            related_id=data.coupon_id,
            extra={"title": "Coupon not applied", "message": str(e)},
        )
        raise HTTPException(502, detail={"message": str(e), **popup})
    except ShopApiError as e:
        popup = dispatch_checkout_event(
            event=CheckoutEvent.ACTION_FAILED,
            session=session,
            shopper=shopper,
            related_id=data.coupon_id,
            extra={"title": "Coupon not applied", "message": e.message},
        )
        raise shop_api_http_error(e, popup)

    save_applied_coupon(
        session,
        session_id=shopper.session_id,
        user_id=shopper.user_id,
        coupon=applied,
        cart_total=cart.summary.total,
    )

    popup = dispatch_checkout_event(
        event=CheckoutEvent.COUPON_APPLIED,
        session=session,
        shopper=shopper,
        related_id=applied.coupon_id,
        extra={
            "title": "Coupon applied",
            "message": f"Coupon {applied.coupon_code} applied. You saved {format_money(applied.discount_amount)}.",
        },
    )

    return {**build_cart_response(session, shopper, api, cart), **popup}


@router.delete("/coupon")
def remove_coupon(
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    shopper: Shopper = Depends(get_current_shopper),
):
    removed = remove_applied_coupon(session, shopper.session_id)

    popup = {}
    if removed:
        popup = dispatch_checkout_event(
            event=CheckoutEvent.COUPON_REMOVED,
            session=session,
            shopper=shopper,
            extra={"title": "Coupon removed", "message": "Coupon removed."},
        )

    # totals and shipping come from a fresh cart, never from the pre-removal figures
    cart = _fetch_cart(api, shopper)
    return {**build_cart_response(session, shopper, api, cart), **popup}


# Proceed to Checkout

@router.post("/checkout")
def proceed_to_checkout(
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    shopper: Shopper = Depends(get_current_shopper),
):
    cart = _fetch_cart(api, shopper)
    if not cart.items:
        raise HTTPException(409, "Your cart is empty.")

    coupon = resolve_coupon(session, shopper, cart)
    shipping_settings, _ = load_shipping_settings(api)
    summary = aggregate_totals(cart.summary, coupon, shipping_settings)

    try:
        data = build_checkout_data(summary)
    except ShippingUnavailableError as e:
        raise HTTPException(409, str(e))

    save_snapshot(session, session_id=shopper.session_id, user_id=shopper.user_id, data=data)

    return {
        "checkout": format_checkout_data(data),
        "redirect": "/checkout",
    }
