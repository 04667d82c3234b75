"""Shared test fixtures for the livetube test suite."""

from __future__ import annotations

import pytest

from livetube.cache import StreamCache
from livetube.orchestrator import StreamResolver
from tests.fakes import LIVE_PAGE, MANIFEST, FakeClock, FakeUpstream, FakeValidator


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream(
        ids={LIVE_PAGE: "live123"},
        manifests={"live123": MANIFEST},
    )


@pytest.fixture()
def validator() -> FakeValidator:
    return FakeValidator(live={"https://cdn.example/ok.m3u8"})


@pytest.fixture()
def stream_cache(
    validator: FakeValidator, upstream: FakeUpstream, clock: FakeClock
) -> StreamCache:
    return StreamCache(validator, upstream, ttl_seconds=60, max_entries=3, clock=clock)


@pytest.fixture()
def resolver(stream_cache: StreamCache) -> StreamResolver:
    return StreamResolver(stream_cache)
