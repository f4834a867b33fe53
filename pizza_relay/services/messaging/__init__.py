"""
Messaging Session Factory

Returns the Mock or WhatsApp session based on ENV_MODE.

Usage:
    from pizza_relay.services.messaging import create_messaging_session

    bus = SessionEventBus()
    session = create_messaging_session(bus)
    await session.initialize()

Environment Switching:
    - ENV_MODE=development → MockMessagingSession
    - ENV_MODE=staging / production → WhatsAppSession
"""

import logging

from pizza_relay.core.config import get_settings
from pizza_relay.services.messaging.base import (
    BaseMessagingSession,
    DeliveryError,
    MessagingError,
    NotReadyError,
    SessionState,
)
from pizza_relay.services.messaging.events import (
    SessionEvent,
    SessionEventBus,
    SessionEventType,
)
from pizza_relay.services.messaging.mock import MockMessagingSession

logger = logging.getLogger(__name__)


def create_messaging_session(bus: SessionEventBus) -> BaseMessagingSession:
    """
    Build the configured messaging session.

    One session exists per process; the application creates it once at
    startup and hands it to the request handlers.
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Messaging Session: Using MockMessagingSession (development mode)")
        return MockMessagingSession(
            bus,
            scan_delay=settings.mock_scan_delay,
            failure_rate=settings.mock_failure_rate,
        )

    # neonize loads a native library on import; only pay for it when used
    from pizza_relay.services.messaging.whatsapp import WhatsAppSession

    logger.info(f"Messaging Session: Using WhatsAppSession ({settings.env_mode.value} mode)")
    return WhatsAppSession(bus)


__all__ = [
    "create_messaging_session",
    "BaseMessagingSession",
    "MessagingError",
    "NotReadyError",
    "DeliveryError",
    "SessionState",
    "SessionEvent",
    "SessionEventBus",
    "SessionEventType",
    "MockMessagingSession",
]
