"""Integration test fixtures.

Provides the Starlette app wired to an AppState built from the in-memory
fakes in tests/fakes.py, plus an httpx client speaking to it in-process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from livetube.config import Settings
from livetube.server import create_app
from livetube.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.applications import Starlette

    from livetube.cache import StreamCache
    from livetube.orchestrator import StreamResolver


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def app_state(
    settings: Settings, stream_cache: StreamCache, resolver: StreamResolver
) -> AppState:
    return AppState(settings=settings, cache=stream_cache, resolver=resolver)


@pytest.fixture()
def app(app_state: AppState) -> Starlette:
    return create_app(state=app_state)


@pytest.fixture()
async def client(app: Starlette) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://localhost",
        follow_redirects=False,
    ) as client:
        yield client
