"""
Session Event Bus

Lifecycle events observed from the messaging backend are published here.
The messaging session and the QR relay both subscribe; events are
delivered one at a time, in the order they were published.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class SessionEventType(str, Enum):
    """Events emitted by a messaging session."""
    QR = "qr"
    READY = "ready"
    AUTH_FAILURE = "auth_failure"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class SessionEvent:
    """
    A lifecycle event from the messaging backend.

    Attributes:
        type: Which event this is
        challenge: Login challenge string (QR events only)
        reason: Failure / disconnect reason
        info: Account details reported with the ready event
    """
    type: SessionEventType
    challenge: Optional[str] = None
    reason: Optional[str] = None
    info: Optional[dict[str, Any]] = None

    @classmethod
    def qr(cls, challenge: str) -> "SessionEvent":
        return cls(SessionEventType.QR, challenge=challenge)

    @classmethod
    def ready(cls, info: Optional[dict[str, Any]] = None) -> "SessionEvent":
        return cls(SessionEventType.READY, info=info)

    @classmethod
    def auth_failure(cls, reason: str) -> "SessionEvent":
        return cls(SessionEventType.AUTH_FAILURE, reason=reason)

    @classmethod
    def disconnected(cls, reason: str) -> "SessionEvent":
        return cls(SessionEventType.DISCONNECTED, reason=reason)


Subscriber = Callable[[SessionEvent], Awaitable[None]]


class SessionEventBus:
    """In-process publish/subscribe channel for session events."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register an async callback for every future event.

        Returns:
            A function that removes the subscription again
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def publish(self, event: SessionEvent) -> None:
        """
        Deliver ``event`` to all subscribers in registration order.

        A failing subscriber is logged and skipped; the others still
        receive the event.
        """
        async with self._lock:
            logger.debug(f"Publishing {event.type.value} to {len(self._subscribers)} subscriber(s)")
            for callback in list(self._subscribers):
                try:
                    await callback(event)
                except Exception as e:
                    logger.exception(f"Subscriber {callback!r} failed on {event.type.value}: {e}")
