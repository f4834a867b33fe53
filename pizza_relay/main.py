"""
FastAPI Application Entry Point

Pizza Order Relay - forwards web orders to the store's WhatsApp.
Uses a mock messaging session in development and a linked WhatsApp Web
session in staging/production.

Endpoints:
    - GET /api/status: Messaging session readiness
    - POST /api/order: Format an order and send it over WhatsApp
    - GET /health: System health check
    - WS /ws: Real-time QR / session events for the operator page
    - GET /*: Operator + order page (single-page fallback)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from pizza_relay.core.config import get_settings, setup_logging
from pizza_relay.schemas import (
    ErrorResponse,
    HealthResponse,
    OrderCreate,
    OrderSubmitResponse,
    StatusResponse,
)
from pizza_relay.services.formatter import format_order_message
from pizza_relay.services.messaging import (
    BaseMessagingSession,
    DeliveryError,
    NotReadyError,
    SessionEventBus,
    create_messaging_session,
)
from pizza_relay.services.qr_relay import QrRelay

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


# =============================================================================
# STATIC FILES
# =============================================================================

class SPAStaticFiles(StaticFiles):
    """Static files where any unknown path serves the entry page."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_session(request: Request) -> BaseMessagingSession:
    return request.app.state.session


def error_response(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

async def initialize_session(session: BaseMessagingSession) -> None:
    """Start the session; a failure leaves the app running but never ready."""
    try:
        await session.initialize()
    except Exception as e:
        logger.exception(f"❌ Messaging session failed to initialize: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    session: BaseMessagingSession = app.state.session

    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Messaging: {session.provider_name}")
    logger.info(f"   CORS origin: {settings.cors_origin}")
    logger.info("=" * 60)

    for warning in settings.validate_production_config():
        logger.warning(f"⚠️ {warning}")

    init_task = asyncio.create_task(initialize_session(session))

    yield  # Application runs

    logger.info("Shutting down...")
    if not init_task.done():
        init_task.cancel()
    await session.shutdown()
    app.state.relay.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# ROUTES
# =============================================================================

router = APIRouter()


@router.get(
    "/api/status",
    response_model=StatusResponse,
    tags=["Session"],
    summary="Messaging Session Status",
)
async def status(session: BaseMessagingSession = Depends(get_session)) -> StatusResponse:
    return StatusResponse(ready=session.is_ready, info=session.info)


@router.post(
    "/api/order",
    response_model=OrderSubmitResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    tags=["Orders"],
    summary="Send Order to WhatsApp",
)
async def submit_order(
    request: Request,
    session: BaseMessagingSession = Depends(get_session),
):
    """
    Format an order and send it as a WhatsApp message.

    Checks, in order: session ready (503), payload valid (400),
    then sends (500 with the backend's reason on failure).
    """
    if not session.is_ready:
        logger.warning(f"Order rejected: session not ready ({session.state.value})")
        return error_response(503, "NotReady")

    try:
        payload = await request.json()
        order = OrderCreate.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.info(f"Order rejected: invalid payload ({e.__class__.__name__})")
        return error_response(400, "InvalidPayload", detail=str(e))

    phone = order.phone_digits
    body = format_order_message(order, submitted_at=datetime.now(), currency=settings.currency_symbol)
    recipient = session.recipient_id(phone)

    logger.info(f"Sending order with {len(order.items)} item(s) to {recipient}")

    try:
        message_id = await session.send_text(recipient, body)
    except NotReadyError as e:
        logger.warning(f"Order not sent: {e}")
        return error_response(503, "NotReady")
    except DeliveryError as e:
        logger.error(f"Order not sent to {recipient}: {e.reason}")
        return error_response(500, e.reason)
    except Exception as e:
        logger.exception(f"Error sending order: {e}")
        return error_response(500, str(e) or e.__class__.__name__)

    logger.info(f"Order sent to {recipient} (ID: {message_id})")
    return OrderSubmitResponse(id=message_id)


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(session: BaseMessagingSession = Depends(get_session)) -> HealthResponse:
    healthy = await session.health_check()
    return HealthResponse(
        status="operational" if healthy else "degraded",
        provider=session.provider_name,
        state=session.state.value,
        timestamp=datetime.now(),
    )


@router.websocket("/ws")
async def session_events(websocket: WebSocket) -> None:
    """Operator page channel: status snapshot, then qr/ready/auth_failure/disconnected."""
    relay: QrRelay = websocket.app.state.relay
    await relay.connect(websocket)
    try:
        while True:
            # Client frames (text or binary) are ignored; this just waits for it to leave
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except WebSocketDisconnect:
        pass
    finally:
        relay.disconnect(websocket)


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(session: Optional[BaseMessagingSession] = None) -> FastAPI:
    """
    Build the application around one messaging session.

    Args:
        session: Session to use; the configured one is created if omitted
    """
    if session is None:
        session = create_messaging_session(SessionEventBus())

    app = FastAPI(
        title=settings.app_name,
        description="Relays pizza orders to the store's WhatsApp and hands the login QR to the operator.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.session = session
    app.state.relay = QrRelay(session)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        # browsers refuse credentials with a wildcard origin
        allow_credentials=not settings.cors_allows_any_origin,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(Exception, global_exception_handler)
    app.include_router(router)

    static_dir = Path(settings.static_directory) if settings.static_directory else STATIC_DIR
    app.mount("/", SPAStaticFiles(directory=str(static_dir), html=True), name="static")

    return app


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on PORT."""
    import uvicorn

    uvicorn.run("pizza_relay.main:app", host=settings.api_host, port=settings.port)


if __name__ == "__main__":
    run()
