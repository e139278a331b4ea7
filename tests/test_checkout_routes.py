from datetime import datetime, timedelta, timezone

from conftest import auth_headers
from app.schemas.checkout_schemas import PaymentIntent
from app.schemas.coupon_schemas import AppliedCoupon, Coupon
from app.services.shop_api import ShopApiError

HEADERS = auth_headers()
ADMIN = auth_headers(user_id="admin-1", session_id="admin-sess", role="admin")
FORM = {"shipping_address_id": "addr-1"}


def start_checkout(client):
    response = client.post("/cart/checkout", headers=HEADERS)
    assert response.status_code == 200
    return response.json()["checkout"]


def set_intent(shop_api, total="105.99", intent_id="pi_1"):
    shop_api.intent = PaymentIntent.model_validate(
        {
            "clientSecret": "secret",
            "paymentIntentId": intent_id,
            "amount": total,
            "currency": "gbp",
            "breakdown": {"subtotal": "100.00", "shippingCost": "5.99", "total": total},
        }
    )


def test_checkout_page_without_snapshot_redirects_to_cart(client):
    response = client.get("/checkout", headers=HEADERS, follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "/cart"


def test_checkout_page_shows_cart_figures(client):
    snapshot = start_checkout(client)

    body = client.get("/checkout", headers=HEADERS).json()

    assert body["checkout"] == snapshot
    assert body["checkout"]["total"] == "105.99"


def test_abandon_checkout(client):
    start_checkout(client)

    assert client.delete("/checkout", headers=HEADERS).json()["message"] == "Checkout abandoned"
    assert client.get("/checkout", headers=HEADERS, follow_redirects=False).status_code == 307


def test_order_without_snapshot_is_refused(client, shop_api):
    response = client.post("/checkout/cod", json=FORM, headers=HEADERS)

    assert response.status_code == 409
    assert response.json()["detail"]["redirect"] == "/cart"
    assert not any(call[0] == "create_cod_order" for call in shop_api.calls)


def test_form_errors_are_reported_together(client):
    start_checkout(client)
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()

    response = client.post("/checkout/cod", json={"scheduled_time": past}, headers=HEADERS)

    assert response.status_code == 422
    assert response.json()["detail"]["errors"] == [
        "Please select a shipping address.",
        "Scheduled delivery time cannot be in the past.",
    ]


def test_cod_order_clears_checkout_state(client, shop_api):
    shop_api.coupons = [
        Coupon.model_validate(
            {"id": "c-1", "code": "SAVE10", "discountType": "PERCENTAGE", "discountValue": "10"}
        )
    ]
    shop_api.applied = AppliedCoupon.model_validate(
        {
            "couponId": "c-1",
            "couponCode": "SAVE10",
            "discountAmount": "10.00",
            "discountType": "PERCENTAGE",
            "finalAmount": "90.00",
        }
    )
    client.post("/cart/coupon", json={"coupon_id": "c-1"}, headers=HEADERS)
    start_checkout(client)

    response = client.post("/checkout/cod", json=FORM, headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["order"]["orderNumber"] == "ORD-1"
    assert body["popup"]["level"] == "success"

    payload = next(call[1] for call in shop_api.calls if call[0] == "create_cod_order")
    assert payload["shippingAddressId"] == "addr-1"
    assert payload["billingAddressId"] == "addr-1"
    assert payload["couponCode"] == "SAVE10"

    assert client.get("/checkout", headers=HEADERS, follow_redirects=False).status_code == 307
    assert client.get("/cart", headers=HEADERS).json()["applied_coupon"] is None

    admin = client.get("/admin/notifications", headers=ADMIN).json()
    assert admin["results"][0]["trigger_source"] == "order_placed"


def test_failed_order_keeps_snapshot(client, shop_api):
    start_checkout(client)
    shop_api.order_error = ShopApiError("Address not found", status_code=400)

    response = client.post("/checkout/cod", json=FORM, headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["detail"]["popup"]["message"] == "Address not found"
    assert client.get("/checkout", headers=HEADERS).status_code == 200


def test_payment_intent_total_mismatch_sends_shopper_back(client, shop_api):
    start_checkout(client)
    set_intent(shop_api, total="110.00")

    response = client.post("/checkout/payment-intent", json=FORM, headers=HEADERS)

    assert response.status_code == 409
    assert response.json()["detail"]["redirect"] == "/cart"
    assert "£105.99 to £110.00" in response.json()["detail"]["message"]
    assert client.get("/checkout", headers=HEADERS, follow_redirects=False).status_code == 307


def test_card_payment_confirms_once(client, shop_api):
    start_checkout(client)
    set_intent(shop_api)

    intent = client.post("/checkout/payment-intent", json=FORM, headers=HEADERS).json()
    assert intent == {
        "client_secret": "secret",
        "payment_intent_id": "pi_1",
        "amount": "105.99",
        "currency": "gbp",
    }

    confirm = {**FORM, "payment_intent_id": "pi_1"}
    body = client.post("/checkout/confirm-card", json=confirm, headers=HEADERS).json()
    assert body["state"] == "confirmed"
    assert body["order"]["id"] == "order-1"

    payload = next(call[1] for call in shop_api.calls if call[0] == "confirm_card_order")
    assert payload["paymentIntentId"] == "pi_1"

    again = client.post("/checkout/confirm-card", json=confirm, headers=HEADERS).json()
    assert again == {"message": "Order already confirmed", "order_id": "order-1"}
    assert sum(1 for call in shop_api.calls if call[0] == "confirm_card_order") == 1


def test_confirmation_failure_is_not_reported_as_payment_failure(client, shop_api):
    start_checkout(client)
    set_intent(shop_api)
    client.post("/checkout/payment-intent", json=FORM, headers=HEADERS)
    shop_api.confirm_error = ShopApiError("Order service unavailable", status_code=500)

    response = client.post(
        "/checkout/confirm-card", json={**FORM, "payment_intent_id": "pi_1"}, headers=HEADERS
    )

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["state"] == "payment_captured_order_unconfirmed"
    assert detail["payment_intent_id"] == "pi_1"
    assert "do not pay again" in detail["message"]

    unconfirmed = client.get("/admin/payments/unconfirmed", headers=ADMIN).json()["results"]
    assert [p["payment_intent_id"] for p in unconfirmed] == ["pi_1"]
    assert unconfirmed[0]["amount"] == "105.99"

    toasts = client.get("/notifications", headers=HEADERS).json()["results"]
    assert toasts[0]["trigger_source"] == "payment_confirmation_failed"


def test_confirmation_can_be_retried_after_failure(client, shop_api):
    start_checkout(client)
    set_intent(shop_api)
    client.post("/checkout/payment-intent", json=FORM, headers=HEADERS)
    shop_api.confirm_error = ShopApiError("timeout")
    client.post("/checkout/confirm-card", json={**FORM, "payment_intent_id": "pi_1"}, headers=HEADERS)

    shop_api.confirm_error = None
    response = client.post(
        "/checkout/confirm-card", json={**FORM, "payment_intent_id": "pi_1"}, headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json()["state"] == "confirmed"
    assert client.get("/admin/payments/unconfirmed", headers=ADMIN).json()["results"] == []


def test_payment_failure_report(client, shop_api):
    start_checkout(client)
    set_intent(shop_api)
    client.post("/checkout/payment-intent", json=FORM, headers=HEADERS)

    response = client.post(
        "/checkout/payment-failed",
        json={"payment_intent_id": "pi_1", "reason": "Card declined"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["state"] == "payment_failed"
    assert response.json()["popup"]["message"].startswith("Card declined.")
    assert client.get("/checkout", headers=HEADERS).status_code == 200


def test_payments_belong_to_their_shopper(client, shop_api):
    start_checkout(client)
    set_intent(shop_api)
    client.post("/checkout/payment-intent", json=FORM, headers=HEADERS)

    response = client.post(
        "/checkout/payment-failed",
        json={"payment_intent_id": "pi_1"},
        headers=auth_headers(user_id="someone-else", session_id="sess-9"),
    )

    assert response.status_code == 404
