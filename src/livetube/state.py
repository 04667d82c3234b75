"""Application state container.

AppState is created once at server startup (inside the Starlette lifespan)
and shared by every request handler through ``request.app.state``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from livetube.cache import StreamCache
    from livetube.config import Settings
    from livetube.orchestrator import StreamResolver


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every request handler."""

    settings: Settings
    cache: StreamCache
    resolver: StreamResolver
    http_client: httpx.AsyncClient | None = None
