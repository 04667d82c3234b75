"""Unit tests for server wiring and the container health check."""

from __future__ import annotations

import httpx
import pytest
import respx

from livetube.cache import StreamCache
from livetube.config import Settings
from livetube.orchestrator import StreamResolver
from livetube.server import build_state, check_health, main

HEALTH_URL = "http://127.0.0.1:3000/health"


class TestBuildState:
    async def test_wires_shared_components(self) -> None:
        settings = Settings()
        async with httpx.AsyncClient() as http_client:
            state = build_state(settings, http_client)
        assert state.settings is settings
        assert state.http_client is http_client
        assert isinstance(state.cache, StreamCache)
        assert isinstance(state.resolver, StreamResolver)

    @pytest.mark.parametrize("ttl_minutes", [0, -1])
    async def test_non_positive_ttl_disables_cache(self, ttl_minutes: float) -> None:
        settings = Settings(cache={"ttl_minutes": ttl_minutes})
        async with httpx.AsyncClient() as http_client:
            state = build_state(settings, http_client)
        assert state.settings.cache.enabled is False
        assert state.cache.size == 0


class TestCheckHealth:
    def test_healthy(self) -> None:
        with respx.mock:
            respx.get(HEALTH_URL).mock(return_value=httpx.Response(200, json={"status": "ok"}))
            assert check_health(Settings()) == 0

    def test_unhealthy_status(self) -> None:
        with respx.mock:
            respx.get(HEALTH_URL).mock(return_value=httpx.Response(503))
            assert check_health(Settings()) == 1

    def test_unreachable(self) -> None:
        with respx.mock:
            respx.get(HEALTH_URL).mock(side_effect=httpx.ConnectError("refused"))
            assert check_health(Settings()) == 1

    def test_main_health_flag_exits_with_status(self) -> None:
        with respx.mock:
            respx.get(HEALTH_URL).mock(return_value=httpx.Response(200))
            with pytest.raises(SystemExit) as exc_info:
                main(["--health"])
        assert exc_info.value.code == 0
