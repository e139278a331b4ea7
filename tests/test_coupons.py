from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlmodel import select

from app.models.applied_coupon import AppliedCouponRecord
from app.schemas.coupon_schemas import AppliedCoupon, Coupon, DiscountType
from app.services.coupons import (
    coupon_option,
    current_coupon,
    get_applied_coupon,
    list_coupon_options,
    remove_applied_coupon,
    save_applied_coupon,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_coupon(**overrides) -> Coupon:
    data = {
        "id": "c-1",
        "code": "SAVE10",
        "discountType": "PERCENTAGE",
        "discountValue": "10",
        "minOrderAmount": "50.00",
    }
    data.update(overrides)
    return Coupon.model_validate(data)


def applied(final="90.00", discount="10.00") -> AppliedCoupon:
    return AppliedCoupon(
        coupon_id="c-1",
        coupon_code="SAVE10",
        discount_amount=Decimal(discount),
        discount_type=DiscountType.PERCENTAGE,
        final_amount=Decimal(final),
    )


def test_below_minimum_reports_shortfall():
    option = coupon_option(make_coupon(), Decimal("40.00"), now=NOW)

    assert option.eligible is False
    assert option.shortfall == Decimal("10.00")
    assert option.message == "Add £10.00 more to use this coupon."


def test_meeting_minimum_is_eligible():
    option = coupon_option(make_coupon(), Decimal("50.00"), now=NOW)

    assert option.eligible is True
    assert option.message is None


def test_inactive_and_expired_are_ineligible():
    inactive = coupon_option(make_coupon(isActive=False), Decimal("100"), now=NOW)
    expired = coupon_option(
        make_coupon(validUntil=(NOW - timedelta(days=1)).isoformat()), Decimal("100"), now=NOW
    )

    assert not inactive.eligible
    assert inactive.message == "This coupon is not active."
    assert not expired.eligible
    assert expired.message == "This coupon has expired."


def test_list_keeps_ineligible_coupons():
    options = list_coupon_options(
        [make_coupon(), make_coupon(id="c-2", code="FREE", minOrderAmount="0")],
        Decimal("40.00"),
        now=NOW,
    )

    assert [o.eligible for o in options] == [False, True]


def test_slot_holds_one_coupon_per_session(db_session):
    save_applied_coupon(db_session, session_id="s1", user_id="u1", coupon=applied(), cart_total=Decimal("100.00"))
    other = applied().model_copy(update={"coupon_id": "c-9", "coupon_code": "OTHER"})
    save_applied_coupon(db_session, session_id="s1", user_id="u1", coupon=other, cart_total=Decimal("100.00"))

    record = get_applied_coupon(db_session, "s1")
    assert record.coupon_code == "OTHER"
    assert len(db_session.exec(select(AppliedCouponRecord)).all()) == 1


def test_current_coupon_matches_unchanged_cart(db_session):
    save_applied_coupon(db_session, session_id="s1", user_id="u1", coupon=applied(), cart_total=Decimal("100.00"))

    coupon = current_coupon(db_session, "s1", Decimal("100.00"))

    assert coupon.final_amount == Decimal("90.00")
    assert coupon.discount_type == DiscountType.PERCENTAGE


def test_cart_change_drops_coupon(db_session):
    save_applied_coupon(db_session, session_id="s1", user_id="u1", coupon=applied(), cart_total=Decimal("100.00"))

    assert current_coupon(db_session, "s1", Decimal("120.00")) is None
    assert get_applied_coupon(db_session, "s1") is None


def test_remove_reports_whether_anything_was_applied(db_session):
    assert remove_applied_coupon(db_session, "s1") is False

    save_applied_coupon(db_session, session_id="s1", user_id="u1", coupon=applied(), cart_total=Decimal("100.00"))

    assert remove_applied_coupon(db_session, "s1") is True
    assert get_applied_coupon(db_session, "s1") is None
