"""
Messaging Session Abstract Base Class

Defines the interface contract for the session that delivers order messages.
Both MockMessagingSession and WhatsAppSession implement it, so the HTTP layer
behaves identically whichever one is active.

The backend's own state machine is opaque. This side tracks a SessionState
that is set only from the events the backend emits; it is never inferred
from anything else.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

from pizza_relay.services.messaging.events import (
    SessionEvent,
    SessionEventBus,
    SessionEventType,
)

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AWAITING_SCAN = "awaiting_scan"
    READY = "ready"
    DISCONNECTED = "disconnected"
    AUTH_FAILED = "auth_failed"


EVENT_STATES = {
    SessionEventType.QR: SessionState.AWAITING_SCAN,
    SessionEventType.READY: SessionState.READY,
    SessionEventType.AUTH_FAILURE: SessionState.AUTH_FAILED,
    SessionEventType.DISCONNECTED: SessionState.DISCONNECTED,
}


class MessagingError(Exception):
    """Base class for messaging session errors."""


class NotReadyError(MessagingError):
    """The session is not authenticated and connected."""

    def __init__(self, state: SessionState):
        self.state = state
        super().__init__(f"Messaging session is not ready (state: {state.value})")


class DeliveryError(MessagingError):
    """The backend rejected the message or failed to send it."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class BaseMessagingSession(ABC):
    """
    Abstract base class for messaging sessions.

    Subclasses call ``_emit`` (or ``_emit_threadsafe`` from library threads)
    for every backend event; the state is updated before the event is
    published on the bus.
    """

    #: Server part of the recipient identifier
    recipient_server: str = "c.us"

    def __init__(self, bus: SessionEventBus):
        self.bus = bus
        self._state = SessionState.UNAUTHENTICATED
        self._info: Optional[dict[str, Any]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == SessionState.READY

    @property
    def info(self) -> Optional[dict[str, Any]]:
        """Account details reported by the backend while ready, else None."""
        return self._info if self.is_ready else None

    def recipient_id(self, phone_digits: str) -> str:
        """Backend addressing form for a digits-only phone number."""
        return f"{phone_digits}@{self.recipient_server}"

    def ensure_ready(self) -> None:
        if not self.is_ready:
            raise NotReadyError(self._state)

    @abstractmethod
    async def initialize(self) -> None:
        """Begin establishing the session. Events follow asynchronously."""
        pass

    @abstractmethod
    async def send_text(self, recipient_id: str, body: str) -> str:
        """
        Send a text message.

        Returns:
            Backend-assigned message identifier

        Raises:
            NotReadyError: Session is not ready
            DeliveryError: Backend rejected the message or timed out
        """
        pass

    async def shutdown(self) -> None:
        """Release the backend connection."""
        return None

    async def health_check(self) -> bool:
        return self.is_ready

    # =========================================================================
    # EVENT EMISSION
    # =========================================================================

    async def _emit(self, event: SessionEvent) -> None:
        previous = self._state
        self._state = EVENT_STATES[event.type]
        if event.type == SessionEventType.READY:
            self._info = event.info
        elif event.type != SessionEventType.QR:
            self._info = None

        if previous != self._state:
            logger.info(f"Session state: {previous.value} → {self._state.value}")

        await self.bus.publish(event)

    def _emit_threadsafe(self, event: SessionEvent) -> None:
        """Schedule ``_emit`` on the session's event loop from another thread."""
        if self._loop is None or self._loop.is_closed():
            logger.warning(f"Dropping {event.type.value} event: no running event loop")
            return
        self._loop.call_soon_threadsafe(self._schedule_emit, event)

    def _schedule_emit(self, event: SessionEvent) -> None:
        task = asyncio.ensure_future(self._emit(event))
        task.add_done_callback(self._log_task_error)

    @staticmethod
    def _log_task_error(task: "asyncio.Future[Any]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Session event dispatch failed: {exc!r}")
