"""Tests for ApiKeyMiddleware.

Each test exercises the middleware directly via httpx's ASGI transport so no
real server is started. The inner app is a trivial 200-OK echo that never
runs if the middleware short-circuits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from livetube.transport import ApiKeyMiddleware

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _ok_app(scope: Scope, receive: Receive, send: Send) -> None:
    """Minimal ASGI app that always returns 200 OK."""
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": b"ok"})


def _client(app: ASGIApp) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://localhost",
    )


# ---------------------------------------------------------------------------
# No key configured
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_no_key_allows_any_request() -> None:
    app = ApiKeyMiddleware(_ok_app)
    async with _client(app) as client:
        assert (await client.get("/")).status_code == 200
        assert (await client.get("/clear-cache")).status_code == 200


# ---------------------------------------------------------------------------
# Key configured
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_bearer_key_passes() -> None:
    app = ApiKeyMiddleware(_ok_app, api_key="secret")
    async with _client(app) as client:
        response = await client.get("/", headers={"Authorization": "Bearer secret"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_key_inside_user_agent_passes() -> None:
    app = ApiKeyMiddleware(_ok_app, api_key="secret")
    async with _client(app) as client:
        response = await client.get("/", headers={"User-Agent": "VLC/3.0 secret"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_missing_key_returns_401() -> None:
    app = ApiKeyMiddleware(_ok_app, api_key="secret")
    async with _client(app) as client:
        response = await client.get("/")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_wrong_key_returns_401() -> None:
    app = ApiKeyMiddleware(_ok_app, api_key="secret")
    async with _client(app) as client:
        response = await client.get("/", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_health_is_always_open() -> None:
    app = ApiKeyMiddleware(_ok_app, api_key="secret")
    async with _client(app) as client:
        assert (await client.get("/health")).status_code == 200


# ---------------------------------------------------------------------------
# Admin paths
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_admin_path_rejects_plain_key() -> None:
    app = ApiKeyMiddleware(_ok_app, api_key="secret")
    async with _client(app) as client:
        response = await client.get("/clear-cache", headers={"Authorization": "Bearer secret"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_path_accepts_admin_key() -> None:
    app = ApiKeyMiddleware(_ok_app, api_key="secret")
    async with _client(app) as client:
        response = await client.get("/clear-cache", headers={"Authorization": "Bearer secretX"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_key_also_unlocks_regular_paths_via_user_agent() -> None:
    app = ApiKeyMiddleware(_ok_app, api_key="secret")
    async with _client(app) as client:
        response = await client.get("/", headers={"User-Agent": "player secretX"})
    assert response.status_code == 200
