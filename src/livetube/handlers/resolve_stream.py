"""Handler for the main resolution endpoint.

Receives the raw query pairs and AppState, parses candidates, runs the
fallback chain and returns the manifest URL. No Starlette imports:
server.py turns the result into a redirect.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from livetube.errors import ErrorCode, LivetubeError
from livetube.parser import parse_candidates

if TYPE_CHECKING:
    from collections.abc import Iterable

    from livetube.state import AppState


async def handle(pairs: Iterable[tuple[str, str]], state: AppState) -> str | None:
    """Resolve a request's candidates.

    Returns ``None`` when the request carries no candidates at all (status
    check). Raises ``LivetubeError`` when every candidate came up empty.
    """
    candidates = parse_candidates(pairs)
    if not candidates:
        return None

    log = structlog.get_logger().bind(handler="resolve_stream", candidates=len(candidates))
    log.info("handler_called")

    stream_url = await state.resolver.resolve(candidates)
    if stream_url is None:
        raise LivetubeError(
            code=ErrorCode.NO_STREAM_FOUND,
            message="No valid stream found!",
            suggestion="Check that the channel is live or add another fallback candidate.",
            recoverable=True,
        )

    log.info("resolve_complete", stream_url=stream_url)
    return stream_url
