"""Liveness check for direct stream URLs.

A direct URL candidate is accepted only if the origin answers with a status
below 400. The check is a HEAD request; when HEAD fails at the transport level
(some origins drop or reset HEAD) it is retried once as a streamed GET whose
body is never read. Status-code failures are not retried.

Outbound headers can be smuggled into a candidate through a reserved query
parameter: ``?livetube_headers=Referer:https://a.example/,Origin:https://a.example``.
The parameter is stripped before the URL is requested or returned.
"""

from __future__ import annotations

from urllib.parse import unquote_plus, urlsplit, urlunsplit

import httpx
import structlog

log = structlog.get_logger()

DEFAULT_HEADER_PARAM = "livetube_headers"


def build_http_client(timeout_seconds: float = 10.0) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(timeout_seconds),
        headers={"User-Agent": "livetube/1.0"},
        limits=httpx.Limits(
            max_connections=20,
            max_keepalive_connections=10,
        ),
    )


def extract_header_instructions(url: str, param: str) -> tuple[str, dict[str, str]]:
    """Split header instructions out of ``url``.

    Returns ``(clean_url, headers)``. Instructions are ``name:value`` pairs
    separated by commas; only the first colon splits name from value, so
    values may contain colons. Blank or nameless instructions are skipped.
    The URL is returned untouched when the parameter is absent; otherwise only
    the parameter's segments are removed.
    """
    parts = urlsplit(url)
    segments = parts.query.split("&") if parts.query else []

    headers: dict[str, str] = {}
    kept: list[str] = []
    for segment in segments:
        raw_key, _, raw_value = segment.partition("=")
        if unquote_plus(raw_key) != param:
            kept.append(segment)
            continue
        for instruction in unquote_plus(raw_value).split(","):
            name, sep, header_value = instruction.partition(":")
            name = name.strip()
            if sep and name:
                headers[name] = header_value.strip()

    if len(kept) == len(segments):
        return url, headers

    # Other segments are re-joined verbatim.
    return urlunsplit(parts._replace(query="&".join(kept))), headers


class StreamValidator:
    """HEAD-then-GET liveness check implementing ValidatorProtocol."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        header_param: str = DEFAULT_HEADER_PARAM,
    ) -> None:
        self._client = client
        self._header_param = header_param

    async def validate(self, url: str) -> str | None:
        """Return the cleaned URL if it answers below 400, else ``None``.

        Never raises: transport errors, invalid URLs and error statuses are
        logged and downgraded to ``None``.
        """
        try:
            clean_url, headers = extract_header_instructions(url, self._header_param)
            response = await self._request(clean_url, headers)
        except Exception:
            log.warning("stream_validation_failed", url=url, exc_info=True)
            return None

        if response.status_code < 400:
            log.info("stream_validated", url=clean_url, status_code=response.status_code)
            return clean_url

        log.warning("stream_validation_rejected", url=clean_url, status_code=response.status_code)
        return None

    async def _request(self, url: str, headers: dict[str, str]) -> httpx.Response:
        try:
            return await self._client.head(url, headers=headers)
        except httpx.TransportError as exc:
            log.info("head_request_failed", url=url, error=str(exc), fallback="GET")

        async with self._client.stream("GET", url, headers=headers) as response:
            return response
