"""Pure ASGI middleware for the HTTP server: API key checks and request logging."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog
from starlette.datastructures import Headers
from starlette.responses import JSONResponse

from livetube.errors import ErrorCode, LivetubeError

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

log = structlog.get_logger()

OPEN_PATHS: frozenset[str] = frozenset({"/health"})
ADMIN_PATHS: frozenset[str] = frozenset({"/clear-cache"})
ADMIN_KEY_SUFFIX = "X"


def has_access(headers: Headers, key: str) -> bool:
    """A request carries ``key`` as a bearer token or inside its User-Agent.

    The User-Agent form exists for players that cannot set custom headers.
    """
    if headers.get("authorization", "") == f"Bearer {key}":
        return True
    return key in headers.get("user-agent", "")


class ApiKeyMiddleware:
    """Pure ASGI middleware enforcing the optional API key.

    With no key configured every request passes. Admin paths require the
    admin key, which is the API key followed by ``X``.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        api_key: str | None = None,
        admin_paths: frozenset[str] = ADMIN_PATHS,
    ) -> None:
        self.app = app
        self.api_key = api_key
        self.admin_paths = admin_paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and self.api_key and scope["path"] not in OPEN_PATHS:
            key = self.api_key
            if scope["path"] in self.admin_paths:
                key = f"{self.api_key}{ADMIN_KEY_SUFFIX}"

            if not has_access(Headers(scope=scope), key):
                log.warning("request_unauthorized", path=scope["path"])
                error = LivetubeError(
                    code=ErrorCode.UNAUTHORIZED,
                    message="Unauthorized. Missing API key!",
                    suggestion="Send 'Authorization: Bearer <key>' or include the key in the User-Agent.",
                )
                await JSONResponse(error.to_dict(), status_code=401)(scope, receive, send)
                return

        await self.app(scope, receive, send)


class RequestLogMiddleware:
    """Logs one ``request_complete`` event per HTTP request.

    Replaces uvicorn's access log, which is disabled so that every line goes
    through structlog.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            log.info(
                "request_complete",
                method=scope["method"],
                path=scope["path"],
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
