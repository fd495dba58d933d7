"""
Test Configuration
==================

Pytest fixtures for SafeOps tests: a throwaway SQLite database per test, a
fully wired container on top of it, and an HTTP client for the API.
"""

import json
import os
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

SEVERITY_SCALE = {"low": 1, "medium": 2, "high": 3, "critical": 4}
LIKELIHOOD_SCALE = {"low": 1, "medium": 2, "high": 3, "very_high": 4}

# Set test environment before anything reads settings
os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("RPN_SEVERITY_SCALE", json.dumps(SEVERITY_SCALE))
os.environ.setdefault("RPN_LIKELIHOOD_SCALE", json.dumps(LIKELIHOOD_SCALE))

from safeops.container import AppContainer, build_container  # noqa: E402
from safeops.core.config import Settings  # noqa: E402
from safeops.core.database import build_engine, drop_db, init_db  # noqa: E402
from safeops.models.enums import Role  # noqa: E402
from safeops.services.risk import RpnScale  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def scale() -> RpnScale:
    return RpnScale.from_mappings(SEVERITY_SCALE, LIKELIHOOD_SCALE)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'safeops.db'}",
        SECRET_KEY="test-secret-key",
        RPN_SEVERITY_SCALE=SEVERITY_SCALE,
        RPN_LIKELIHOOD_SCALE=LIKELIHOOD_SCALE,
    )


@pytest_asyncio.fixture
async def engine(test_settings: Settings):
    eng = build_engine(test_settings.DATABASE_URL)
    await init_db(eng)
    yield eng
    await drop_db(eng)
    await eng.dispose()


@pytest_asyncio.fixture
async def container(test_settings: Settings, engine) -> AsyncGenerator[AppContainer, None]:
    c = build_container(test_settings, engine)
    yield c
    await c.close()


@pytest.fixture
def gateway(container: AppContainer):
    return container.gateway


@pytest_asyncio.fixture
async def officer(container: AppContainer) -> dict[str, Any]:
    return await container.auth.sign_up("officer@example.com", "password123", "Sam Officer", Role.SAFETY_OFFICER)


@pytest_asyncio.fixture
async def approver(container: AppContainer) -> dict[str, Any]:
    return await container.auth.sign_up("approver@example.com", "password123", "Alex Approver", Role.APPROVER)


@pytest_asyncio.fixture
async def venue(container: AppContainer, officer: dict[str, Any]) -> dict[str, Any]:
    return await container.venues.create({"name": "Harbour Hall", "address": "1 Quay Street",
                                          "postal_code": "4000", "created_by": officer["id"]})


@pytest_asyncio.fixture
async def client(container: AppContainer) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the SafeOps API."""
    from safeops.main import create_app

    app = create_app(container)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def login(client: AsyncClient):
    """Sign in through the token endpoint and return bearer headers."""

    async def _login(email: str, password: str = "password123") -> dict[str, str]:
        response = await client.post("/api/v1/auth/token", data={"username": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login
