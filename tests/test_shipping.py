from decimal import Decimal

from app.schemas.shipping_schemas import ShippingSettings
from app.services.shipping import (
    ShippingStatus,
    amount_needed_for_free_shipping,
    format_shipping_cost,
    free_shipping_message,
    qualifies_for_free_shipping,
    quote_shipping,
    shipping_cost,
)

SETTINGS = ShippingSettings(
    shipping_charge=Decimal("5.99"),
    free_shipping_threshold=Decimal("50.00"),
)


def test_below_threshold_is_charged():
    assert shipping_cost(Decimal("49.99"), SETTINGS) == Decimal("5.99")
    assert qualifies_for_free_shipping(Decimal("49.99"), SETTINGS) is False
    assert amount_needed_for_free_shipping(Decimal("49.99"), SETTINGS) == Decimal("0.01")


def test_threshold_itself_is_free():
    assert shipping_cost(Decimal("50.00"), SETTINGS) == Decimal("0")
    assert qualifies_for_free_shipping(Decimal("50.00"), SETTINGS) is True
    assert amount_needed_for_free_shipping(Decimal("50.00"), SETTINGS) == Decimal("0")


def test_unknown_settings_are_never_free():
    quote = quote_shipping(Decimal("500"), None)

    assert quote.status == ShippingStatus.unknown
    assert quote.cost is None
    assert quote.amount_needed is None
    assert qualifies_for_free_shipping(Decimal("500"), None) is None
    assert free_shipping_message(quote) is None
    assert format_shipping_cost(quote.cost) == "Calculating..."


def test_inactive_settings_ship_free():
    inactive = SETTINGS.model_copy(update={"is_active": False})

    quote = quote_shipping(Decimal("10"), inactive)

    assert quote.status == ShippingStatus.free
    assert quote.cost == Decimal("0")


def test_messages_follow_status():
    charged = quote_shipping(Decimal("30"), SETTINGS)
    free = quote_shipping(Decimal("80"), SETTINGS)

    assert charged.status == ShippingStatus.charged
    assert free_shipping_message(charged) == "Add £20.00 more for free shipping!"
    assert format_shipping_cost(charged.cost) == "£5.99"

    assert free_shipping_message(free) == "You qualify for free shipping!"
    assert format_shipping_cost(free.cost) == "FREE"


def test_zero_charge_below_threshold_reports_free():
    zero = ShippingSettings(shipping_charge=Decimal("0"), free_shipping_threshold=Decimal("50"))

    quote = quote_shipping(Decimal("10"), zero)

    assert quote.status == ShippingStatus.free
    assert free_shipping_message(quote) == "You qualify for free shipping!"


def test_settings_parse_camel_case():
    parsed = ShippingSettings.model_validate(
        {"shippingCharge": "4.50", "freeShippingThreshold": "75.00", "isActive": True}
    )
    assert parsed.shipping_charge == Decimal("4.50")
    assert parsed.free_shipping_threshold == Decimal("75.00")


def test_amount_needed_never_grows_and_reaches_zero_at_threshold():
    amounts = [Decimal(a) for a in ("0", "10", "49.99", "50.00", "50.01", "80", "1000")]

    needed = [amount_needed_for_free_shipping(a, SETTINGS) for a in amounts]

    assert all(later <= earlier for earlier, later in zip(needed, needed[1:]))
    for amount, value in zip(amounts, needed):
        if amount >= SETTINGS.free_shipping_threshold:
            assert value == Decimal("0")
        else:
            assert value == SETTINGS.free_shipping_threshold - amount
