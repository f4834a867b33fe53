"""
Mock Messaging Session

Simulates a WhatsApp Web session without a phone or a browser.
Used in development mode (ENV_MODE=development) and in tests to:
    - Exercise the order flow end to end
    - Preview the QR hand-off on the operator page
    - Drive every lifecycle event on demand

Behavior:
    - initialize() emits a fake QR challenge, then "scans" it after
      ``scan_delay`` seconds and becomes ready
    - send_text() records the message and returns a WhatsApp-like ID
    - Optional random delivery failures (``failure_rate``)
"""

import asyncio
import logging
import random
import uuid
from typing import Any, Optional

from pizza_relay.services.messaging.base import (
    BaseMessagingSession,
    DeliveryError,
)
from pizza_relay.services.messaging.events import SessionEvent, SessionEventBus

logger = logging.getLogger(__name__)

DEFAULT_INFO = {
    "wid": "910000000000@c.us",
    "pushname": "Mock Pizza Store",
    "platform": "mock",
}


class MockMessagingSession(BaseMessagingSession):
    """
    Mock implementation of the messaging session.

    Attributes:
        auto_connect: Emit QR and ready on initialize()
        scan_delay: Seconds between the QR and the ready event
        failure_rate: Probability of a simulated delivery failure (0.0-1.0)
        sent: Every (recipient_id, body, message_id) sent so far
    """

    def __init__(
        self,
        bus: SessionEventBus,
        auto_connect: bool = True,
        scan_delay: float = 3.0,
        failure_rate: float = 0.0,
    ):
        super().__init__(bus)
        self.auto_connect = auto_connect
        self.scan_delay = scan_delay
        self.failure_rate = failure_rate
        self.sent: list[tuple[str, str, str]] = []
        self._scan_task: Optional[asyncio.Task] = None
        self._next_failure: Optional[str] = None
        logger.info(
            f"MockMessagingSession initialized "
            f"(auto_connect={auto_connect}, failure_rate={failure_rate:.0%})"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    async def initialize(self) -> None:
        if not self.auto_connect:
            return
        await self.simulate_qr()
        self._scan_task = asyncio.create_task(self._simulate_scan())

    async def _simulate_scan(self) -> None:
        await asyncio.sleep(self.scan_delay)
        logger.info("Mock QR scanned")
        await self.simulate_ready()

    async def send_text(self, recipient_id: str, body: str) -> str:
        self.ensure_ready()

        if self._next_failure is not None:
            reason, self._next_failure = self._next_failure, None
            logger.warning(f"Mock send failed to {recipient_id}: {reason}")
            raise DeliveryError(reason)

        if random.random() < self.failure_rate:
            logger.warning(f"Mock send failed (simulated) to {recipient_id}")
            raise DeliveryError("Simulated delivery failure")

        message_id = f"true_{recipient_id}_{uuid.uuid4().hex[:20].upper()}"
        self.sent.append((recipient_id, body, message_id))
        logger.info(f"Mock message sent to {recipient_id}: {body[:40]!r}... (ID: {message_id})")
        return message_id

    async def shutdown(self) -> None:
        if self._scan_task is not None and not self._scan_task.done():
            self._scan_task.cancel()

    # =========================================================================
    # SIMULATION HOOKS
    # =========================================================================

    def fail_next_send(self, reason: str) -> None:
        """Make the next send_text() raise DeliveryError(reason)."""
        self._next_failure = reason

    async def simulate_qr(self, challenge: Optional[str] = None) -> None:
        challenge = challenge or f"2@{uuid.uuid4().hex},{uuid.uuid4().hex[:16]}"
        await self._emit(SessionEvent.qr(challenge))

    async def simulate_ready(self, info: Optional[dict[str, Any]] = None) -> None:
        await self._emit(SessionEvent.ready(info or dict(DEFAULT_INFO)))

    async def simulate_auth_failure(self, reason: str = "Mock authentication failure") -> None:
        await self._emit(SessionEvent.auth_failure(reason))

    async def simulate_disconnect(self, reason: str = "Mock disconnect") -> None:
        await self._emit(SessionEvent.disconnected(reason))
