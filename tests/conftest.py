"""Shared test fixtures.

Provides an in-memory SQLite engine and session, an async HTTP client
backed by the FastAPI app, and a settings object in sample mode.  No
network access is made -- upstream calls go to the sample client or an
``httpx.MockTransport``.
"""

from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# ---------------------------------------------------------------------------
# Environment overrides. These must happen BEFORE importing the app so that
# ``pydantic-settings`` picks up the test values instead of the real
# database file and token.
# ---------------------------------------------------------------------------
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.pop("GITHUB_TOKEN", None)
os.environ.setdefault("GITHUB_USERNAME", "kristofer")

from recent_repos.api.deps import get_github_client, get_settings  # noqa: E402
from recent_repos.config import Settings  # noqa: E402
from recent_repos.database import get_session, init_db  # noqa: E402
from recent_repos.external.sample_data import SampleGitHubClient  # noqa: E402
from recent_repos.main import app  # noqa: E402

TEST_USERNAME = "kristofer"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database with all tables created."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as db_session:
        yield db_session


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture()
def test_settings() -> Settings:
    """Settings in sample mode (no token)."""
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        GITHUB_TOKEN=None,
        GITHUB_USERNAME=TEST_USERNAME,
    )


# ---------------------------------------------------------------------------
# Async HTTP client with dependency overrides
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture()
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the FastAPI app.

    ``get_session`` uses the in-memory test database and the GitHub
    client is always the sample client.
    """

    async def _override_get_session():  # type: ignore[no-untyped-def]
        async with session_factory() as db_session:
            yield db_session
            await db_session.commit()

    async def _override_get_github_client():  # type: ignore[no-untyped-def]
        yield SampleGitHubClient()

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_github_client] = _override_get_github_client
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app)  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()
