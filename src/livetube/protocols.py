"""Protocol interfaces for swappable components.

The orchestrator and AppState reference these protocols, not the concrete
implementations. This allows:
- Tests to use lightweight in-memory fakes with call counters
- The yt-dlp backed resolver to be swapped for another platform client
"""

from __future__ import annotations

from typing import Protocol


class ResolverProtocol(Protocol):
    """Interface for the upstream video platform client."""

    async def resolve_id(self, url: str) -> str | None: ...

    async def fetch_manifest(self, video_id: str) -> str | None: ...


class ValidatorProtocol(Protocol):
    """Interface for the direct URL liveness check."""

    async def validate(self, url: str) -> str | None: ...
