import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from app.database import get_session
from app.models.card_payment import CardPaymentStatus
from app.notifications import CheckoutEvent, dispatch_checkout_event
from app.schemas.checkout_schemas import (
    CheckoutData,
    CheckoutForm,
    ConfirmCardPaymentForm,
    PaymentFailedReport,
    validate_checkout_form,
)
from app.services.card_payment_service import (
    get_card_payment,
    mark_confirmation_failed,
    mark_confirmed,
    mark_payment_failed,
    record_payment_intent,
)
from app.services.checkout_snapshot import clear_snapshot, load_snapshot
from app.services.coupons import remove_applied_coupon
from app.services.in_flight import InFlightError, InFlightGuard
from app.services.money import format_money, money_str, to_decimal
from app.services.orders import present_order
from app.services.pricing import format_checkout_data
from app.services.shop_api import ShopApiClient, ShopApiError
from app.session_context import get_in_flight_guard, get_shop_api
from app.utils.errors import shop_api_http_error
from app.utils.token import Shopper, get_current_shopper

logger = logging.getLogger(__name__)

router = APIRouter()

CART_PATH = "/cart"


def _require_snapshot(session: Session, shopper: Shopper) -> CheckoutData:
    data = load_snapshot(session, shopper.session_id)
    if data is None:
        raise HTTPException(
            409,
            detail={
                "message": "Your checkout session has expired. Please review your cart.",
                "redirect": CART_PATH,
            },
        )
    return data


def _validated(form: CheckoutForm) -> CheckoutForm:
    errors = validate_checkout_form(form)
    if errors:
        raise HTTPException(422, detail={"errors": errors})
    return form


def _order_payload(form: CheckoutForm, coupon_code: Optional[str]) -> dict:
    payload = {
        "shippingAddressId": form.shipping_address_id,
        "billingAddressId": form.billing_address_id,
        "deliveryType": form.delivery_type.value,
    }
    if form.scheduled_time is not None:
        payload["scheduledTime"] = form.scheduled_time.isoformat()
    if form.notes:
        payload["notes"] = form.notes
    if coupon_code:
        payload["couponCode"] = coupon_code
    return payload


def _order_total(order: dict):
    summary = (order or {}).get("summary") or {}
    value = summary.get("total", (order or {}).get("totalAmount"))
    return to_decimal(value) if value is not None else None


def _finish_checkout(session: Session, shopper: Shopper, data: Optional[CheckoutData], order: dict) -> dict:
    """Order exists on the server: the snapshot and coupon slot are spent."""
    order = order or {}
    if data is not None:
        charged = _order_total(order)
        if charged is not None and charged != data.total:
            logger.warning(
                f"Order {order.get('id')} total {charged} differs from checkout total {data.total}"
            )

    clear_snapshot(session, shopper.session_id)
    remove_applied_coupon(session, shopper.session_id)

    order_number = order.get("orderNumber") or order.get("id")
    popup = dispatch_checkout_event(
        event=CheckoutEvent.ORDER_PLACED,
        session=session,
        shopper=shopper,
        related_id=str(order.get("id")) if order.get("id") else None,
        extra={
            "title": "Order placed",
            "message": f"Order {order_number} placed successfully.",
            "admin_title": "New Order Placed",
            "admin_content": f"Order {order_number} placed by user {shopper.user_id}",
        },
    )
    return {"order": present_order(order), **popup}


# Checkout page

@router.get("")
def get_checkout(
    session: Session = Depends(get_session),
    shopper: Shopper = Depends(get_current_shopper),
):
    data = load_snapshot(session, shopper.session_id)
    if data is None:
        # no valid checkout state without a snapshot; the cart is the recovery point
        return RedirectResponse(CART_PATH, status_code=307)

    return {"checkout": format_checkout_data(data)}


@router.delete("")
def abandon_checkout(
    session: Session = Depends(get_session),
    shopper: Shopper = Depends(get_current_shopper),
):
    cleared = clear_snapshot(session, shopper.session_id)
    return {"message": "Checkout abandoned" if cleared else "No checkout in progress", "redirect": CART_PATH}


# Pay on delivery

@router.post("/cod")
def place_cod_order(
    form: CheckoutForm,
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    guard: InFlightGuard = Depends(get_in_flight_guard),
    shopper: Shopper = Depends(get_current_shopper),
):
    data = _require_snapshot(session, shopper)
    form = _validated(form)

    try:
        with guard.hold(f"place-order:{shopper.session_id}"):
            order = api.create_cod_order(shopper.token, _order_payload(form, data.coupon_code))
    except InFlightError:
        raise HTTPException(409, "Your order is already being placed.")
    except ShopApiError as e:
        popup = dispatch_checkout_event(
            event=CheckoutEvent.ACTION_FAILED,
            session=session,
            shopper=shopper,
            extra={"title": "Order not placed", "message": e.message},
        )
        raise shop_api_http_error(e, popup)

    return _finish_checkout(session, shopper, data, order)


# Card payment, phase 1

@router.post("/payment-intent")
def create_payment_intent(
    form: CheckoutForm,
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    guard: InFlightGuard = Depends(get_in_flight_guard),
    shopper: Shopper = Depends(get_current_shopper),
):
    data = _require_snapshot(session, shopper)
    form = _validated(form)

    payload = {
        "shippingAddressId": form.shipping_address_id,
        "billingAddressId": form.billing_address_id,
    }
    if data.coupon_code:
        payload["couponCode"] = data.coupon_code

    try:
        with guard.hold(f"place-order:{shopper.session_id}"):
            intent = api.create_payment_intent(shopper.token, payload)
    except InFlightError:
        raise HTTPException(409, "Your payment is already being prepared.")
    except ShopApiError as e:
        popup = dispatch_checkout_event(
            event=CheckoutEvent.ACTION_FAILED,
            session=session,
            shopper=shopper,
            extra={"title": "Payment could not be started", "message": e.message},
        )
        raise shop_api_http_error(e, popup)

    charge = intent.breakdown.total if intent.breakdown else intent.amount
    if charge != data.total:
        # the card would be charged a different figure than the one shown
        logger.warning(
            f"Payment intent {intent.payment_intent_id} total {charge} != checkout total {data.total}"
        )
        clear_snapshot(session, shopper.session_id)
        raise HTTPException(
            409,
            detail={
                "message": (
                    f"Your order total changed from {format_money(data.total)} to "
                    f"{format_money(charge)}. Please review your cart."
                ),
                "redirect": CART_PATH,
            },
        )

    record_payment_intent(
        session,
        payment_intent_id=intent.payment_intent_id,
        session_id=shopper.session_id,
        user_id=shopper.user_id,
        amount=charge,
        currency=intent.currency,
        coupon_code=data.coupon_code,
    )

    return {
        "client_secret": intent.client_secret,
        "payment_intent_id": intent.payment_intent_id,
        "amount": money_str(charge),
        "currency": intent.currency,
    }


def _owned_payment(session: Session, shopper: Shopper, payment_intent_id: str):
    payment = get_card_payment(session, payment_intent_id)
    if payment is None or payment.user_id != shopper.user_id:
        raise HTTPException(404, "Payment not found")
    return payment


# Card payment, phase 2 (after the provider reports success)

@router.post("/confirm-card")
def confirm_card_order(
    form: ConfirmCardPaymentForm,
    session: Session = Depends(get_session),
    api: ShopApiClient = Depends(get_shop_api),
    guard: InFlightGuard = Depends(get_in_flight_guard),
    shopper: Shopper = Depends(get_current_shopper),
):
    payment = _owned_payment(session, shopper, form.payment_intent_id)

    if payment.status == CardPaymentStatus.confirmed:
        return {
            "message": "Order already confirmed",
            "order_id": payment.order_id,
        }

    # money may already be captured, so a missing snapshot does not stop confirmation
    data = load_snapshot(session, shopper.session_id)
    form = _validated(form)

    payload = _order_payload(form, data.coupon_code if data else payment.coupon_code)
    payload["paymentIntentId"] = payment.payment_intent_id

    try:
        with guard.hold(f"confirm:{payment.payment_intent_id}"):
            order = api.confirm_card_order(shopper.token, payload)
            order = order or {}
    except InFlightError:
        raise HTTPException(409, "Your order is already being confirmed.")
    except ShopApiError as e:
        mark_confirmation_failed(session, payment, e.message)
        message = (
            f"Your payment of {format_money(payment.amount)} was received, but we could not "
            f"confirm your order. Please do not pay again; contact support with reference "
            f"{payment.payment_intent_id}."
        )
        popup = dispatch_checkout_event(
            event=CheckoutEvent.PAYMENT_CONFIRMATION_FAILED,
            session=session,
            shopper=shopper,
            related_id=payment.payment_intent_id,
            extra={
                "title": "Payment received, order not confirmed",
                "message": message,
                "admin_title": "Order confirmation failed after payment",
                "admin_content": (
                    f"Payment {payment.payment_intent_id} ({format_money(payment.amount)}) "
                    f"for user {shopper.user_id} has no order: {e.message}"
                ),
            },
        )
        raise HTTPException(
            502,
            detail={
                "state": "payment_captured_order_unconfirmed",
                "message": message,
                "payment_intent_id": payment.payment_intent_id,
                **popup,
            },
        )

    mark_confirmed(session, payment, str(order.get("id")) if order.get("id") else None)
    return {"state": "confirmed", **_finish_checkout(session, shopper, data, order)}


@router.post("/payment-failed")
def report_payment_failed(
    report: PaymentFailedReport,
    session: Session = Depends(get_session),
    shopper: Shopper = Depends(get_current_shopper),
):
    payment = _owned_payment(session, shopper, report.payment_intent_id)

    if payment.status in (CardPaymentStatus.confirmed, CardPaymentStatus.confirmation_failed):
        raise HTTPException(409, "This payment has already been processed.")

    mark_payment_failed(session, payment, report.reason)

    reason = report.reason or "Payment failed"
    popup = dispatch_checkout_event(
        event=CheckoutEvent.PAYMENT_FAILED,
        session=session,
        shopper=shopper,
        related_id=payment.payment_intent_id,
        extra={
            "title": "Payment failed",
            "message": f"{reason}. You have not been charged; please try again.",
        },
    )
    return {"state": "payment_failed", **popup}
