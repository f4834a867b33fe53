"""
WhatsApp Messaging Session

Production implementation backed by neonize, a WhatsApp Web (multi-device)
client. The session is linked once by scanning a QR code with the store's
phone; credentials are persisted in a SQLite file named after the fixed
client id so restarts reconnect without a new scan.

neonize's ``connect()`` blocks for the lifetime of the connection and calls
back from its own threads. Callbacks are turned into SessionEvents and
handed back to the asyncio loop.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from neonize.client import NewClient
from neonize.events import (
    ConnectedEv,
    ConnectFailureEv,
    DisconnectedEv,
    LoggedOutEv,
)
from neonize.utils import build_jid

from pizza_relay.core.config import get_settings
from pizza_relay.services.messaging.base import (
    BaseMessagingSession,
    DeliveryError,
)
from pizza_relay.services.messaging.events import SessionEvent, SessionEventBus

logger = logging.getLogger(__name__)


class WhatsAppSession(BaseMessagingSession):
    """WhatsApp Web session for the store's account."""

    recipient_server = "s.whatsapp.net"

    def __init__(
        self,
        bus: SessionEventBus,
        session_path: Optional[Path] = None,
    ):
        super().__init__(bus)
        settings = get_settings()
        self.session_path = Path(session_path or settings.session_path)
        self._client: Optional[NewClient] = None
        self._connect_task: Optional[asyncio.Task] = None
        logger.info(f"WhatsAppSession initialized (session: {self.session_path})")

    @property
    def provider_name(self) -> str:
        return "whatsapp"

    async def initialize(self) -> None:
        self._loop = asyncio.get_running_loop()
        self.session_path.parent.mkdir(parents=True, exist_ok=True)

        client = NewClient(str(self.session_path))
        client.qr(self._on_qr)
        client.event(ConnectedEv)(self._on_connected)
        client.event(ConnectFailureEv)(self._on_connect_failure)
        client.event(LoggedOutEv)(self._on_logged_out)
        client.event(DisconnectedEv)(self._on_disconnected)
        self._client = client

        logger.info("Connecting to WhatsApp Web...")
        self._connect_task = asyncio.create_task(asyncio.to_thread(client.connect))
        self._connect_task.add_done_callback(self._on_connect_exit)

    async def send_text(self, recipient_id: str, body: str) -> str:
        self.ensure_ready()

        user, _, server = recipient_id.partition("@")
        jid = build_jid(user, server or self.recipient_server)

        try:
            response = await asyncio.to_thread(self._client.send_message, jid, body)
        except Exception as e:
            logger.error(f"WhatsApp send to {recipient_id} failed: {e}")
            raise DeliveryError(str(e) or e.__class__.__name__) from e

        message_id = getattr(response, "ID", None)
        if not message_id:
            raise DeliveryError("WhatsApp did not return a message id")

        logger.info(f"WhatsApp message sent to {recipient_id} (ID: {message_id})")
        return message_id

    async def shutdown(self) -> None:
        if self._client is None:
            return
        try:
            await asyncio.to_thread(self._client.disconnect)
        except Exception as e:
            logger.warning(f"WhatsApp disconnect failed: {e}")

    # =========================================================================
    # LIBRARY CALLBACKS (run on neonize threads)
    # =========================================================================

    def _on_qr(self, client: NewClient, data_qr: bytes) -> None:
        challenge = data_qr.decode() if isinstance(data_qr, bytes) else str(data_qr)
        logger.info("QR received, waiting for scan")
        self._emit_threadsafe(SessionEvent.qr(challenge))

    def _on_connected(self, client: NewClient, event: ConnectedEv) -> None:
        logger.info("WhatsApp client is ready!")
        self._emit_threadsafe(SessionEvent.ready(self._account_info(client)))

    def _on_connect_failure(self, client: NewClient, event: ConnectFailureEv) -> None:
        reason = str(getattr(event, "Message", "") or getattr(event, "Reason", "") or "connect failure")
        logger.error(f"WhatsApp authentication failed: {reason}")
        self._emit_threadsafe(SessionEvent.auth_failure(reason))

    def _on_logged_out(self, client: NewClient, event: LoggedOutEv) -> None:
        reason = f"logged out ({getattr(event, 'Reason', 'unknown')})"
        logger.warning(f"WhatsApp session {reason}; a new QR scan is required")
        self._emit_threadsafe(SessionEvent.auth_failure(reason))

    def _on_disconnected(self, client: NewClient, event: DisconnectedEv) -> None:
        logger.warning("WhatsApp client disconnected")
        self._emit_threadsafe(SessionEvent.disconnected("connection closed"))

    def _on_connect_exit(self, task: "asyncio.Task[Any]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"WhatsApp connection loop crashed: {exc!r}")
            if self.is_ready:
                self._schedule_emit(SessionEvent.disconnected(str(exc)))

    @staticmethod
    def _account_info(client: NewClient) -> Optional[dict[str, Any]]:
        """Best-effort account details for /api/status."""
        try:
            me = client.get_me()
        except Exception as e:
            logger.debug(f"Could not read account info: {e}")
            return None
        jid = getattr(me, "JID", None)
        return {
            "wid": f"{getattr(jid, 'User', '')}@{getattr(jid, 'Server', '')}" if jid else None,
            "pushname": getattr(me, "PushName", None),
            "platform": "whatsapp-web",
        }
