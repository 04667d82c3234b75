"""Fallback resolution over an ordered list of candidates.

Candidates are tried strictly in order, one at a time. The first candidate
that yields a manifest URL wins and later candidates are never dispatched.
A failing candidate is logged and treated as absent; it never aborts the
chain. No knowledge of HTTP, Starlette or AppState.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

import structlog

from livetube.models.candidate import CandidateKind
from livetube.upstream import live_page_url

if TYPE_CHECKING:
    from collections.abc import Sequence

    from livetube.cache import StreamCache
    from livetube.models.candidate import Candidate, ResolvedStream

log = structlog.get_logger()


class StreamResolver:
    """Dispatches candidates to the memoized validator and upstream lookups."""

    def __init__(self, cache: StreamCache) -> None:
        self._cache = cache

    async def resolve(self, candidates: Sequence[Candidate]) -> ResolvedStream:
        """Return the first present result, or ``None`` once every candidate is absent."""
        for index, candidate in enumerate(candidates):
            try:
                stream_url = await self.resolve_one(candidate)
            except Exception:
                log.warning(
                    "candidate_failed",
                    index=index,
                    kind=candidate.kind.name,
                    value=candidate.value,
                    exc_info=True,
                )
                continue

            if stream_url:
                log.info("candidate_resolved", index=index, kind=candidate.kind.name)
                return stream_url
            log.info("candidate_absent", index=index, kind=candidate.kind.name)

        log.info("no_stream_found", candidates=len(candidates))
        return None

    async def resolve_one(self, candidate: Candidate) -> ResolvedStream:
        match candidate.kind:
            case CandidateKind.BY_DIRECT_URL:
                return await self._cache.validate_stream(candidate.value)
            case CandidateKind.BY_ID:
                return await self._cache.fetch_manifest(candidate.value)
            case CandidateKind.BY_HANDLE:
                video_id = await self._cache.resolve_id(live_page_url(candidate.value))
                if not video_id:
                    return None
                return await self._cache.fetch_manifest(video_id)
            case _:
                assert_never(candidate.kind)
