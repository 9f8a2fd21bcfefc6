"""Pytest configuration and fixtures for RC Gateway tests.

This module provides reusable fixtures for:
- Test settings (SQLite database in a temporary directory)
- Async test clients
- Record stores (in-memory, durable SQLite, unreachable database)
- Mocked upstream fetcher
"""

from collections.abc import AsyncGenerator
from copy import deepcopy
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from rcgateway.config import Settings
from rcgateway.core.database import ConnectionProvider, create_engine
from rcgateway.main import create_app
from rcgateway.repositories import InMemoryRCDetailsRepository, RCDetailsRepository
from tests.mocks.rc_responses import MH12AB1234_SUCCESS

# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test-specific settings.

    Overrides production settings with test-appropriate values.
    """
    return Settings(
        app_env="development",  # type: ignore[arg-type]
        debug=False,
        log_level="DEBUG",  # type: ignore[arg-type]
        log_format="console",  # type: ignore[arg-type]
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'rc_cache.db'}",
        database_connect_timeout=2.0,
        rc_api_base_url="https://rc.example.test/api/v1",
        rc_details_path="rc/rc_verify",
        rc_api_timeout=5.0,
        api_key="test-api-key",  # type: ignore[arg-type]
    )


@pytest.fixture
def unreachable_settings(test_settings: Settings, tmp_path: Path) -> Settings:
    """Settings pointing at a database file that cannot be opened."""
    return test_settings.model_copy(
        update={
            "database_url": (
                f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'rc.db'}"
            )
        }
    )


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    """Create a test FastAPI application with test settings."""
    return create_app(settings=test_settings)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing.

    This client makes requests to the test app without starting a server.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
async def authenticated_client(
    app: FastAPI, test_settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async client carrying the cache administration API key."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": test_settings.api_key.get_secret_value()},
    ) as client:
        yield client


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Async engine over a temporary SQLite file."""
    engine = create_engine(test_settings)
    yield engine
    await engine.dispose()


@pytest.fixture
def memory_store() -> InMemoryRCDetailsRepository:
    """Fresh in-memory record store."""
    return InMemoryRCDetailsRepository()


@pytest.fixture
async def durable_store(
    engine: AsyncEngine,
    test_settings: Settings,
    memory_store: InMemoryRCDetailsRepository,
) -> RCDetailsRepository:
    """Durable store with its table created, falling back to ``memory_store``."""
    store = RCDetailsRepository(
        ConnectionProvider(
            engine, connect_timeout=test_settings.database_connect_timeout
        ),
        memory_store,
        table_name=test_settings.rc_db_table,
    )
    await store.create_schema()
    return store


@pytest.fixture
async def unreachable_store(
    unreachable_settings: Settings,
    memory_store: InMemoryRCDetailsRepository,
) -> AsyncGenerator[RCDetailsRepository, None]:
    """Durable store whose database can never be reached."""
    engine = create_engine(unreachable_settings)
    yield RCDetailsRepository(
        ConnectionProvider(engine, connect_timeout=1.0),
        memory_store,
    )
    await engine.dispose()


# =============================================================================
# Mock Service Fixtures
# =============================================================================


@pytest.fixture
def upstream_success_payload() -> dict[str, Any]:
    """A fresh copy of the MH12AB1234 upstream success body."""
    return deepcopy(MH12AB1234_SUCCESS)


@pytest.fixture
def mock_fetcher(upstream_success_payload: dict[str, Any]) -> MagicMock:
    """Create a mock upstream fetcher returning the decoded MH12AB1234 body.

    Usage:
        async def test_lookup(mock_fetcher: MagicMock):
            mock_fetcher.fetch_rc_details.return_value = NOT_FOUND_RESPONSE
    """
    mock = MagicMock()
    mock.fetch_rc_details = AsyncMock(return_value=upstream_success_payload)
    mock.close = AsyncMock()
    return mock


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_rc_number() -> str:
    """Return a sample registration number for testing."""
    return "MH12AB1234"


@pytest.fixture
def auth_header() -> dict[str, str]:
    """Authorization header forwarded upstream."""
    return {"Authorization": "Bearer test-upstream-token"}
