"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("MINDFUL_LOG_FORMAT", "console")
os.environ.setdefault("MINDFUL_LOG_LEVEL", "WARNING")

from mindful.activities.records import ActivityCategory  # noqa: E402
from mindful.auth.dependencies import Identity  # noqa: E402
from mindful.dependencies import (  # noqa: E402
    get_activity_providers,
    get_profile_directory,
    get_session_store,
)
from mindful.main import create_app  # noqa: E402
from mindful.redis_client import get_redis_optional  # noqa: E402
from mindful.sessions.detector import SeekDetector  # noqa: E402
from mindful.sessions.manager import WatchSessionManager  # noqa: E402
from tests.fakes import InMemorySessionStore, StaticDirectory, StaticProvider  # noqa: E402
from tests.helpers import USER_ID  # noqa: E402


@pytest.fixture
def identity() -> Identity:
    return Identity(user_id=USER_ID, email="ana@example.com")


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def manager(store: InMemorySessionStore) -> WatchSessionManager:
    return WatchSessionManager(store)


@pytest.fixture
def detector() -> SeekDetector:
    return SeekDetector()


@pytest.fixture
def providers() -> dict[ActivityCategory, StaticProvider]:
    return {category: StaticProvider() for category in ActivityCategory}


@pytest.fixture
def directory() -> StaticDirectory:
    return StaticDirectory()


@pytest.fixture
def app(
    store: InMemorySessionStore,
    providers: dict[ActivityCategory, StaticProvider],
    directory: StaticDirectory,
) -> FastAPI:
    """The real app with in-memory collaborators.

    The lifespan is not run, so no database or Redis is touched; the rate
    limiter lets everything through while Redis is not initialized.
    """
    app = create_app()
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_activity_providers] = lambda: providers
    app.dependency_overrides[get_profile_directory] = lambda: directory
    app.dependency_overrides[get_redis_optional] = lambda: None
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
