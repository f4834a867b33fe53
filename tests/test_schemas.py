"""Unit tests for order validation and phone normalization."""

import pytest
from pydantic import ValidationError

from pizza_relay.schemas import OrderCreate, normalize_phone


def test_normalize_phone_strips_non_digits() -> None:
    assert normalize_phone("+91 98765-43210") == "919876543210"
    assert normalize_phone("(555) 123.4567") == "5551234567"


def test_phone_digits_property() -> None:
    order = OrderCreate.model_validate({"phone": "+91 98765-43210", "items": [{"name": "Margherita"}]})
    assert order.phone == "+91 98765-43210"
    assert order.phone_digits == "919876543210"


@pytest.mark.parametrize(
    "payload",
    [
        {"items": [{"name": "Margherita"}]},
        {"phone": "919876543210"},
        {"phone": "919876543210", "items": []},
        {"phone": "12-34", "items": [{"name": "Margherita"}]},
        {"phone": "1234567890123456", "items": [{"name": "Margherita"}]},
        {"phone": "919876543210", "items": [{"name": "Margherita", "qty": 0}]},
        {"phone": "919876543210", "items": [{"name": "Margherita", "price": -1}]},
    ],
)
def test_invalid_orders_rejected(payload: dict) -> None:
    with pytest.raises(ValidationError):
        OrderCreate.model_validate(payload)


def test_optional_fields_default_to_none() -> None:
    order = OrderCreate.model_validate({"phone": "919876543210", "items": [{}]})
    assert order.name is None
    assert order.total is None
    assert order.notes is None
    assert order.items[0].qty is None
    assert order.items[0].price is None


def test_long_names_and_notes_are_accepted() -> None:
    order = OrderCreate.model_validate({
        "phone": "919876543210",
        "name": "A" * 300,
        "items": [{"name": "B" * 300, "qty": 1}],
        "notes": "x" * 600,
    })
    assert len(order.notes) == 600
    assert len(order.items[0].name) == 300
