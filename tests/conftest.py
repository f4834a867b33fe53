"""Pytest configuration and shared fixtures."""

import logging
import os
from unittest.mock import AsyncMock

os.environ["ENV_MODE"] = "development"

import pytest
from fastapi.testclient import TestClient

from pizza_relay.main import create_app
from pizza_relay.services.messaging import MockMessagingSession, SessionEventBus


def pytest_configure() -> None:
    # Silence verbose INFO logs from httpx (and httpcore) during test runs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@pytest.fixture()
def session() -> MockMessagingSession:
    """A mock session that only changes state when a test tells it to."""
    return MockMessagingSession(SessionEventBus(), auto_connect=False)


@pytest.fixture()
def client(session: MockMessagingSession):
    """Test client for an app built around ``session``."""
    with TestClient(create_app(session=session)) as test_client:
        yield test_client


@pytest.fixture()
def ready_client(client: TestClient, session: MockMessagingSession) -> TestClient:
    """Test client whose session has already reported ready."""
    client.portal.call(session.simulate_ready)
    return client


@pytest.fixture()
def send_spy(session: MockMessagingSession, monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Records every call to ``session.send_text`` while still sending."""
    spy = AsyncMock(wraps=session.send_text)
    monkeypatch.setattr(session, "send_text", spy)
    return spy
