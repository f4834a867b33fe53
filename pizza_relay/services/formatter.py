"""
Order Message Formatter

Turns a validated order into the WhatsApp message body the store receives.
Pure functions only: no I/O, the submission time is passed in.
"""

from datetime import datetime
from typing import Iterable, Optional

from pizza_relay.schemas import OrderCreate, OrderItem

DEFAULT_ITEM_NAME = "Item"
DEFAULT_CUSTOMER_NAME = "Customer"
TIMESTAMP_FORMAT = "%d %b %Y, %I:%M %p"
CONTINUATION_INDENT = "\n   "


def format_amount(value: float) -> str:
    """``300.0`` -> ``"300"``, ``12.5`` -> ``"12.50"``."""
    value = round(float(value), 2)
    if value.is_integer():
        return str(int(value))
    return f"{value:.2f}"


def item_quantity(item: OrderItem) -> float:
    return item.qty if item.qty is not None else 1


def compute_total(items: Iterable[OrderItem]) -> float:
    """Sum of price × qty; a missing price counts as 0, a missing qty as 1."""
    return round(sum((item.price or 0) * item_quantity(item) for item in items), 2)


def single_line(text: str) -> str:
    """Join line breaks with spaces so free text cannot start a numbered line."""
    return " ".join(text.splitlines())


def indent_continuation(text: str) -> str:
    """Keep line breaks but indent every line after the first."""
    return CONTINUATION_INDENT.join(text.splitlines())


def format_item_line(index: int, item: OrderItem, currency: str) -> str:
    name = single_line(item.name or DEFAULT_ITEM_NAME)
    line = f"{index}. {name}  x{format_amount(item_quantity(item))}"
    if item.price is not None:
        line += f" - {currency}{format_amount(item.price)}"
    return line


def format_order_message(
    order: OrderCreate,
    submitted_at: Optional[datetime] = None,
    currency: str = "₹",
) -> str:
    """
    Build the chat message for an order.

    Args:
        order: Validated order
        submitted_at: Submission time for the timestamp line (defaults to now)
        currency: Symbol prefixed to every amount

    Returns:
        Multi-line message body
    """
    submitted_at = submitted_at or datetime.now()
    total = order.total if order.total is not None else compute_total(order.items)

    lines = [
        "📦 *New Pizza Order*",
        f"👤 Name: {single_line(order.name or DEFAULT_CUSTOMER_NAME)}",
        f"📱 Phone: {order.phone_digits}",
        "🍕 Items:",
    ]
    lines.extend(
        format_item_line(index, item, currency)
        for index, item in enumerate(order.items, start=1)
    )
    lines.append(f"💰 Total: {currency}{format_amount(total)}")

    if order.notes and order.notes.strip():
        lines.append(f"📝 Notes: {indent_continuation(order.notes)}")

    lines.append(f"🕒 Time: {submitted_at.strftime(TIMESTAMP_FORMAT)}")
    return "\n".join(lines)
