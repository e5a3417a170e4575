"""Pytest configuration and shared fixtures for the Mongo MCP server tests.

Test Organization:
-------------------
tests/
├── unit/          # Fast, isolated tests; MongoClient is replaced by mocks
├── integration/   # Real MongoDB at TEST_MONGODB_URI (skipped when unreachable)
└── conftest.py    # This file - shared fixtures

Run subsets with markers:
```bash
pytest -m unit
pytest -m integration
```
"""

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from mongo_mcp.mcp_server.database.connection import StoreGateway
from mongo_mcp.mcp_server.tools.dispatcher import OperationDispatcher

TEST_CONNECTION_STRING = "mongodb://localhost:27017/app"

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against a real MongoDB")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath)

        if "unit" in test_path.parts:
            item.add_marker(pytest.mark.unit)
        elif "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# MOCK CLIENT FIXTURES
# =============================================================================


class RecordingClientFactory:
    """Stands in for ``MongoClient`` and records every client it builds.

    All clients share one mocked database and collection so tests can configure
    return values once and inspect calls afterwards.
    """

    def __init__(self) -> None:
        self.clients: list[MagicMock] = []
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.database = MagicMock(name="Database")
        self.collection = MagicMock(name="Collection")
        self.database.__getitem__.return_value = self.collection

    def __call__(self, connection_string: str, **kwargs: Any) -> MagicMock:
        client = MagicMock(name="MongoClient")
        client.get_default_database.return_value = self.database
        self.clients.append(client)
        self.calls.append((connection_string, kwargs))
        return client

    @property
    def opened(self) -> int:
        return len(self.clients)

    @property
    def closed(self) -> int:
        return sum(client.close.call_count for client in self.clients)


@pytest.fixture
def client_factory() -> RecordingClientFactory:
    """Provide a recording replacement for MongoClient."""
    return RecordingClientFactory()


@pytest.fixture
def mock_collection(client_factory: RecordingClientFactory) -> MagicMock:
    """The collection every mocked client returns."""
    return client_factory.collection


@pytest.fixture
def gateway(client_factory: RecordingClientFactory) -> StoreGateway:
    """Store gateway wired to the recording client factory."""
    return StoreGateway(TEST_CONNECTION_STRING, client_factory=client_factory)


@pytest.fixture
def dispatcher(gateway: StoreGateway) -> OperationDispatcher:
    """Dispatcher wired to the mocked gateway."""
    return OperationDispatcher(gateway)


# =============================================================================
# TEST DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_users() -> list[dict]:
    """Documents as MongoDB would return them from the ``users`` collection."""
    return [
        {"_id": ObjectId("65f1c0ffee0000000000a001"), "name": "Ada", "active": True},
        {"_id": ObjectId("65f1c0ffee0000000000a002"), "name": "Grace", "active": False},
        {"_id": ObjectId("65f1c0ffee0000000000a003"), "name": "José", "active": True},
    ]

