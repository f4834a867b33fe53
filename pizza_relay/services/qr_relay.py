"""
QR Relay

Pushes session events to the operator pages connected over WebSocket.
QR challenges are rendered to a PNG data URL so the page can show them
in an <img> tag.

Delivery is best-effort: there is no replay for late subscribers and no
retry for a subscriber that cannot be reached (it is dropped instead).
"""

import asyncio
import base64
import io
import logging
from typing import Any

import qrcode
from fastapi import WebSocket

from pizza_relay.services.messaging.base import BaseMessagingSession
from pizza_relay.services.messaging.events import SessionEvent, SessionEventType

logger = logging.getLogger(__name__)

# Seconds a subscriber may take to accept one event before it is dropped
SEND_TIMEOUT = 5.0


def render_qr_data_url(challenge: str) -> str:
    """Encode ``challenge`` as a scannable QR code PNG data URL."""
    image = qrcode.make(challenge)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


class QrRelay:
    """Broadcasts session events to every connected WebSocket subscriber."""

    def __init__(self, session: BaseMessagingSession, send_timeout: float = SEND_TIMEOUT):
        self.session = session
        self.send_timeout = send_timeout
        self._connections: set[WebSocket] = set()
        self._unsubscribe = session.bus.subscribe(self.handle_event)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a subscriber and send it the current status (never a past QR)."""
        await websocket.accept()
        self._connections.add(websocket)
        logger.info(f"Subscriber connected ({len(self._connections)} total)")
        await websocket.send_json({
            "event": "status",
            "data": {"ready": self.session.is_ready, "state": self.session.state.value},
        })

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._connections:
            self._connections.discard(websocket)
            logger.info(f"Subscriber disconnected ({len(self._connections)} left)")

    def close(self) -> None:
        self._unsubscribe()

    async def handle_event(self, event: SessionEvent) -> None:
        if event.type == SessionEventType.QR:
            image = await asyncio.to_thread(render_qr_data_url, event.challenge)
            data: dict[str, Any] = {"challenge": event.challenge, "image": image}
        elif event.type == SessionEventType.READY:
            data = {}
        else:
            data = {"reason": event.reason}

        await self.broadcast(event.type.value, data)

    async def broadcast(self, name: str, data: dict[str, Any]) -> None:
        message = {"event": name, "data": data}
        targets = list(self._connections)
        # a slow subscriber must not hold up the others
        results = await asyncio.gather(
            *(asyncio.wait_for(websocket.send_json(message), self.send_timeout) for websocket in targets),
            return_exceptions=True,
        )
        for websocket, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(f"Dropping unreachable subscriber after failed {name} push: {result!r}")
                self.disconnect(websocket)
        logger.debug(f"Broadcast {name} to {len(self._connections)} subscriber(s)")
