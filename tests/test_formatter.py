"""Unit tests for the order message formatter."""

import re
from datetime import datetime

import pytest

from pizza_relay.schemas import OrderCreate
from pizza_relay.services.formatter import (
    compute_total,
    format_amount,
    format_order_message,
)

SUBMITTED_AT = datetime(2026, 10, 18, 19, 30)


def make_order(**overrides) -> OrderCreate:
    data = {
        "phone": "919876543210",
        "items": [{"name": "Margherita", "qty": 2, "price": 150}],
    }
    data.update(overrides)
    return OrderCreate.model_validate(data)


def numbered_lines(message: str) -> list[str]:
    return [line for line in message.splitlines() if re.match(r"^\d+\. ", line)]


def test_margherita_scenario() -> None:
    """Test the documented single-pizza order renders item, total and notes."""
    message = format_order_message(make_order(notes="less spicy"), submitted_at=SUBMITTED_AT)

    assert "1. Margherita  x2 - ₹150" in message
    assert "💰 Total: ₹300" in message
    assert "📝 Notes: less spicy" in message
    assert "🕒 Time: 18 Oct 2026, 07:30 PM" in message


@pytest.mark.parametrize("count", [1, 3, 12])
def test_one_numbered_line_per_item(count: int) -> None:
    """Test each item gets exactly one line starting with its 1-based index."""
    items = [{"name": f"Pizza {i}", "qty": 1, "price": 100} for i in range(count)]
    lines = numbered_lines(format_order_message(make_order(items=items), submitted_at=SUBMITTED_AT))

    assert len(lines) == count
    for index, line in enumerate(lines, start=1):
        assert line.startswith(f"{index}. ")


def test_multiline_item_name_stays_on_one_line() -> None:
    order = make_order(items=[{"name": "Farmhouse\n2. Extra", "qty": 1}])
    lines = numbered_lines(format_order_message(order, submitted_at=SUBMITTED_AT))
    assert lines == ["1. Farmhouse 2. Extra  x1"]


def test_computed_total_treats_missing_price_as_zero_and_qty_as_one() -> None:
    order = make_order(items=[
        {"name": "Margherita", "qty": 2, "price": 150},
        {"name": "Garlic Bread", "price": 99.5},
        {"name": "Water", "qty": 3},
    ])
    assert compute_total(order.items) == 399.5
    assert "💰 Total: ₹399.50" in format_order_message(order, submitted_at=SUBMITTED_AT)


def test_explicit_total_wins() -> None:
    message = format_order_message(make_order(total=250), submitted_at=SUBMITTED_AT)
    assert "💰 Total: ₹250" in message
    assert "₹300" not in message


def test_item_defaults() -> None:
    """Test missing name, qty and price fall back to placeholder, 1 and no suffix."""
    message = format_order_message(make_order(items=[{}]), submitted_at=SUBMITTED_AT)
    assert numbered_lines(message) == ["1. Item  x1"]
    assert "💰 Total: ₹0" in message


@pytest.mark.parametrize("notes", [None, "", "   "])
def test_notes_omitted_when_missing_or_blank(notes) -> None:
    message = format_order_message(make_order(notes=notes), submitted_at=SUBMITTED_AT)
    assert "Notes" not in message


def test_notes_appear_verbatim_once() -> None:
    notes = "Ring twice, no onions!"
    message = format_order_message(make_order(notes=notes), submitted_at=SUBMITTED_AT)
    assert message.count(notes) == 1


def test_customer_name_and_currency() -> None:
    message = format_order_message(make_order(name="Asha"), submitted_at=SUBMITTED_AT, currency="$")
    assert "👤 Name: Asha" in message
    assert "1. Margherita  x2 - $150" in message

    anonymous = format_order_message(make_order(), submitted_at=SUBMITTED_AT)
    assert "👤 Name: Customer" in anonymous


@pytest.mark.parametrize(
    ("value", "expected"),
    [(300, "300"), (300.0, "300"), (12.5, "12.50"), (0.1 + 0.2, "0.30")],
)
def test_format_amount(value: float, expected: str) -> None:
    assert format_amount(value) == expected


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "Asha\n2. Free pizza"},
        {"phone": "91987\n2. 6543210"},
        {"notes": "ok\n2. extra"},
        {"notes": "\r\n3. first\n4. second"},
    ],
)
def test_free_text_cannot_add_numbered_lines(overrides: dict) -> None:
    """Test line breaks in name, phone or notes never start an extra numbered line."""
    message = format_order_message(make_order(**overrides), submitted_at=SUBMITTED_AT)
    assert numbered_lines(message) == ["1. Margherita  x2 - ₹150"]


def test_phone_line_shows_digits() -> None:
    message = format_order_message(make_order(phone="+91 98765-43210"), submitted_at=SUBMITTED_AT)
    assert "📱 Phone: 919876543210" in message


def test_multiline_notes_keep_their_lines_indented() -> None:
    message = format_order_message(make_order(notes="ok\n2. extra"), submitted_at=SUBMITTED_AT)
    assert "📝 Notes: ok\n   2. extra" in message


def test_long_free_text_is_rendered_in_full() -> None:
    notes = "x" * 600
    name = "Extra Large Four Cheese " * 6
    message = format_order_message(
        make_order(notes=notes, items=[{"name": name, "qty": 1}]),
        submitted_at=SUBMITTED_AT,
    )
    assert notes in message
    assert name in message
