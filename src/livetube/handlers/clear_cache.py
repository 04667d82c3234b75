"""Handler for the administrative cache clear endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from livetube.models.candidate import ClearOutcome

if TYPE_CHECKING:
    from livetube.state import AppState


async def handle(state: AppState) -> dict:
    if state.cache.clear() is ClearOutcome.CLEARED:
        return {"success": True, "message": "Cache cleared!"}
    return {"success": True, "message": "Nothing to clear. Cache is empty!"}
