"""Pytest fixtures for the contract layer, hooks and reference server."""

import pytest
from fastapi.testclient import TestClient

from skillquest.api.main import create_app
from skillquest.database.query_cache import QueryCache
from skillquest.database.storage import InMemoryStorage, seed_demo_data
from skillquest.integrations.clients.mocks.platform import InProcessPlatformClient
from skillquest.utils.config_loader import PlatformConfig


@pytest.fixture
def storage():
    """Seeded in-memory storage for tests."""
    return seed_demo_data(InMemoryStorage())


@pytest.fixture
def app(storage):
    return create_app(storage=storage, config=PlatformConfig())


@pytest.fixture
def api(app):
    """Synchronous TestClient against the reference app."""
    return TestClient(app)


@pytest.fixture
def cache():
    return QueryCache()


@pytest.fixture
def make_client(app):
    """Factory for in-process clients; use as `async with make_client(token) as client`."""

    def _make(session_token=None):
        return InProcessPlatformClient(app, session_token=session_token)

    return _make
