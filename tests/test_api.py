"""HTTP API tests against a mock messaging session."""

from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from pizza_relay.services.messaging import MockMessagingSession, SessionState

MARGHERITA_ORDER = {
    "phone": "919876543210",
    "items": [{"name": "Margherita", "qty": 2, "price": 150}],
    "notes": "less spicy",
}


def test_status_before_scan(client: TestClient) -> None:
    response = client.get("/api/status")
    assert response.status_code == 200
    assert response.json() == {"ready": False, "info": None}


def test_status_when_ready(ready_client: TestClient) -> None:
    body = ready_client.get("/api/status").json()
    assert body["ready"] is True
    assert body["info"]["platform"] == "mock"


def test_order_sent_when_ready(
    ready_client: TestClient, session: MockMessagingSession, send_spy: AsyncMock
) -> None:
    response = ready_client.post("/api/order", json=MARGHERITA_ORDER)
    send_spy.assert_awaited_once()

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert isinstance(body["id"], str) and body["id"]

    assert len(session.sent) == 1
    recipient, message, message_id = session.sent[0]
    assert recipient == "919876543210@c.us"
    assert message_id == body["id"]
    assert "1. Margherita  x2 - ₹150" in message
    assert "₹300" in message
    assert "less spicy" in message


def test_phone_is_normalized_for_recipient(ready_client: TestClient, session: MockMessagingSession) -> None:
    order = dict(MARGHERITA_ORDER, phone="+91 98765-43210")
    assert ready_client.post("/api/order", json=order).status_code == 200
    assert session.sent[0][0] == "919876543210@c.us"


def test_order_rejected_when_not_ready(
    client: TestClient, session: MockMessagingSession, send_spy: AsyncMock
) -> None:
    response = client.post("/api/order", json=MARGHERITA_ORDER)

    assert response.status_code == 503
    assert response.json() == {"success": False, "error": "NotReady"}
    assert session.sent == []
    send_spy.assert_not_called()


def test_readiness_checked_before_payload(client: TestClient, send_spy: AsyncMock) -> None:
    response = client.post("/api/order", json={"items": []})
    assert response.status_code == 503
    send_spy.assert_not_called()


def test_empty_items_rejected(ready_client: TestClient, send_spy: AsyncMock) -> None:
    response = ready_client.post("/api/order", json={"phone": "919876543210", "items": []})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "InvalidPayload"
    send_spy.assert_not_called()


def test_missing_phone_rejected(ready_client: TestClient, send_spy: AsyncMock) -> None:
    response = ready_client.post("/api/order", json={"items": MARGHERITA_ORDER["items"]})
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidPayload"
    send_spy.assert_not_called()


def test_malformed_json_rejected(ready_client: TestClient, send_spy: AsyncMock) -> None:
    response = ready_client.post(
        "/api/order",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidPayload"
    send_spy.assert_not_called()


def test_delivery_failure_returns_reason(ready_client: TestClient, session: MockMessagingSession) -> None:
    session.fail_next_send("recipient not on WhatsApp")

    response = ready_client.post("/api/order", json=MARGHERITA_ORDER)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "recipient not on WhatsApp"}


def test_disconnect_makes_orders_fail_with_not_ready(
    ready_client: TestClient, session: MockMessagingSession
) -> None:
    ready_client.portal.call(session.simulate_disconnect, "phone offline")

    assert session.state == SessionState.DISCONNECTED
    assert ready_client.get("/api/status").json() == {"ready": False, "info": None}
    assert ready_client.post("/api/order", json=MARGHERITA_ORDER).status_code == 503


def test_health(client: TestClient, session: MockMessagingSession) -> None:
    body = client.get("/health").json()
    assert body["status"] == "degraded"
    assert body["provider"] == "mock"
    assert body["state"] == "unauthenticated"

    client.portal.call(session.simulate_ready)
    assert client.get("/health").json()["status"] == "operational"


def test_cors_preflight(client: TestClient) -> None:
    response = client.options(
        "/api/order",
        headers={
            "Origin": "https://orders.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_entry_page_served(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert "Pizza Order Relay" in response.text


def test_unknown_routes_fall_back_to_entry_page(client: TestClient) -> None:
    response = client.get("/orders/new")
    assert response.status_code == 200
    assert response.text == client.get("/").text


def test_long_free_text_accepted(ready_client: TestClient, session: MockMessagingSession) -> None:
    order = {
        "phone": "919876543210",
        "name": "N" * 150,
        "items": [{"name": "Extra Large Four Cheese Pizza " * 5, "qty": 1, "price": 499}],
        "notes": "x" * 600,
    }

    response = ready_client.post("/api/order", json=order)

    assert response.status_code == 200
    assert "x" * 600 in session.sent[0][1]


def test_multiline_free_text_keeps_item_numbering(
    ready_client: TestClient, session: MockMessagingSession
) -> None:
    order = dict(MARGHERITA_ORDER, name="Asha\n2. Free pizza", notes="ok\n2. extra")

    assert ready_client.post("/api/order", json=order).status_code == 200

    message = session.sent[0][1]
    numbered = [line for line in message.splitlines() if line[:1].isdigit()]
    assert numbered == ["1. Margherita  x2 - ₹150"]
