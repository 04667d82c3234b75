"""HTTP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState in the Starlette lifespan
- Register routes and middleware
- Start uvicorn, or run the container health check with ``--health``
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, RedirectResponse
from starlette.routing import Route

import livetube.handlers.clear_cache as h_clear_cache
import livetube.handlers.resolve_stream as h_resolve_stream
from livetube import __version__
from livetube.cache import StreamCache
from livetube.config import Settings
from livetube.errors import ErrorCode, LivetubeError
from livetube.orchestrator import StreamResolver
from livetube.state import AppState
from livetube.transport import ApiKeyMiddleware, RequestLogMiddleware
from livetube.upstream import YtDlpResolver
from livetube.validator import StreamValidator, build_http_client

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request
    from starlette.responses import Response

log = structlog.get_logger()

HEALTH_CHECK_TIMEOUT_SECONDS = 5.0

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NO_STREAM_FOUND: 404,
    ErrorCode.UNAUTHORIZED: 401,
}


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


def build_state(settings: Settings, http_client: httpx.AsyncClient) -> AppState:
    """Wire validator, upstream resolver, cache and orchestrator."""
    validator = StreamValidator(http_client, header_param=settings.validator.header_param)
    upstream = YtDlpResolver.from_settings(settings)
    cache = StreamCache(
        validator,
        upstream,
        ttl_seconds=settings.cache.ttl_minutes * 60,
        max_entries=settings.cache.max_entries,
        enabled=settings.cache.enabled,
    )
    return AppState(
        settings=settings,
        cache=cache,
        resolver=StreamResolver(cache),
        http_client=http_client,
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _error_response(error: LivetubeError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=_STATUS_BY_CODE.get(error.code, 400))


async def index(request: Request) -> Response:
    state: AppState = request.app.state.livetube
    try:
        stream_url = await h_resolve_stream.handle(request.query_params.multi_items(), state)
    except LivetubeError as exc:
        log.warning("request_error", code=exc.code, message=exc.message)
        return _error_response(exc)
    except Exception:
        log.error("request_unexpected_error", path="/", exc_info=True)
        raise

    if stream_url is None:
        return JSONResponse({"success": True, "message": "Server running!"})
    return RedirectResponse(stream_url, status_code=302)


async def clear_cache(request: Request) -> Response:
    state: AppState = request.app.state.livetube
    return JSONResponse(await h_clear_cache.handle(state))


async def health(request: Request) -> Response:
    return JSONResponse({"status": "ok"})


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None, state: AppState | None = None) -> Starlette:
    """Build the Starlette app.

    When ``state`` is given it is used as-is and the lifespan creates nothing;
    otherwise the lifespan owns the shared httpx client.
    """
    settings = settings or (state.settings if state else Settings())

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        if state is not None:
            yield
            return

        http_client = build_http_client(settings.validator.timeout_seconds)
        app.state.livetube = build_state(settings, http_client)
        log.info(
            "server_started",
            version=__version__,
            host=settings.server.host,
            port=settings.server.port,
            cache_enabled=settings.cache.enabled,
            auth_enabled=bool(settings.server.api_key),
        )
        try:
            yield
        finally:
            await http_client.aclose()
            log.info("server_stopping")

    app = Starlette(
        routes=[
            Route("/", index, methods=["GET", "POST"]),
            Route("/clear-cache", clear_cache, methods=["GET", "POST"]),
            Route("/health", health, methods=["GET"]),
        ],
        middleware=[
            Middleware(RequestLogMiddleware),
            Middleware(
                CORSMiddleware,
                allow_origins=[settings.server.cors_origin],
                allow_methods=["GET", "POST", "OPTIONS"],
            ),
            Middleware(GZipMiddleware),
            Middleware(ApiKeyMiddleware, api_key=settings.server.api_key),
        ],
        lifespan=lifespan,
    )
    if state is not None:
        app.state.livetube = state
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def check_health(settings: Settings) -> int:
    """Call the running server's /health endpoint. Returns a process exit code."""
    url = f"http://{settings.server.host}:{settings.server.port}/health"
    try:
        response = httpx.get(url, timeout=HEALTH_CHECK_TIMEOUT_SECONDS)
    except httpx.HTTPError as exc:
        print(f"Health check failed: {exc}", file=sys.stderr)
        return 1

    if response.is_success:
        print("Health check OK")
        return 0
    print(f"Health check failed: {response.status_code}", file=sys.stderr)
    return 1


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    settings = Settings()

    if "--health" in args:
        sys.exit(check_health(settings))

    _setup_logging(settings)
    if not settings.server.api_key:
        log.warning("http_auth_disabled")

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # structlog only; RequestLogMiddleware replaces the access log
    )


if __name__ == "__main__":
    main()
