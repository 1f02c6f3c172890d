"""FastAPI lookup server for ASNINFO.

Serves the in-memory dataset over a small read-only HTTP API and keeps it
fresh with a :class:`~asninfo.core.refresher.BackgroundRefresher` running
alongside request handlers.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import uvicorn
from fastapi import FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from asninfo import __version__
from asninfo.api.models import ErrorResponse, HealthResponse, LookupRequest, LookupResponse
from asninfo.core.config import ServerConfig, SourcesConfig
from asninfo.core.errors import ValidationError
from asninfo.core.lookup import DEFAULT_MAX_ASNS, LookupService
from asninfo.core.models import DatasetMode
from asninfo.core.refresher import BackgroundRefresher
from asninfo.core.store import SnapshotStore
from asninfo.providers import ProviderAdapter
from asninfo.utils.helpers import parse_asn_list
from asninfo.utils.logger import get_logger

logger = get_logger(__name__)

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "No valid ASNs supplied"},
    413: {"model": ErrorResponse, "description": "Too many ASNs in one request"},
}


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    store: SnapshotStore,
    max_asns: int = DEFAULT_MAX_ASNS,
    cors_origins: Optional[List[str]] = None,
    refresher: Optional[BackgroundRefresher] = None,
) -> FastAPI:
    """Build and return a configured FastAPI application.

    Args:
        store: Snapshot store queried by every request.
        max_asns: Maximum ASNs accepted per lookup.
        cors_origins: List of allowed CORS origins. Defaults to ``["*"]``.
        refresher: Optional refresher started and stopped with the app lifespan.

    Returns:
        Configured :class:`fastapi.FastAPI` instance.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if refresher is not None:
            await refresher.start()
        try:
            yield
        finally:
            if refresher is not None:
                await refresher.stop()

    _app = FastAPI(
        title="ASNINFO API",
        description="Lookup API for merged Autonomous System metadata",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS
    origins = cors_origins if cors_origins is not None else ["*"]
    _app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    lookup_service = LookupService(store, max_asns=max_asns)
    _app.state.store = store
    _app.state.lookup = lookup_service
    _app.state.refresher = refresher

    @_app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Response:
        path = request.url.path
        if path == "/health":
            return await call_next(request)
        start = time.perf_counter()
        response: Response = await call_next(request)
        logger.info(
            "request method=%s path=%s status=%d latency_ms=%d",
            request.method,
            path,
            response.status_code,
            int((time.perf_counter() - start) * 1000),
        )
        return response

    @_app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    @_app.get(
        "/health",
        response_model=HealthResponse,
        tags=["meta"],
        summary="Health check",
    )
    async def health() -> Any:
        """Return service status and the timestamp of the served snapshot."""
        return lookup_service.health()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @_app.get(
        "/lookup",
        tags=["lookup"],
        summary="Look up ASNs",
        responses={200: {"model": LookupResponse}, **_ERROR_RESPONSES},
    )
    async def get_lookup(
        asns: Optional[str] = Query(None, description="Comma-separated ASNs, e.g. 13335,15169"),
        legacy: bool = Query(False, description="Return a bare list of flat records"),
    ) -> Any:
        """Look up a comma-separated list of ASNs. Tokens that are not ASNs are ignored."""
        parsed = parse_asn_list(asns)
        if not parsed:
            raise ValidationError("no valid ASNs provided in 'asns' query parameter")
        return lookup_service.lookup(parsed, legacy=legacy)

    @_app.post(
        "/lookup",
        tags=["lookup"],
        summary="Look up ASNs (JSON body)",
        responses={200: {"model": LookupResponse}, **_ERROR_RESPONSES},
    )
    async def post_lookup(
        body: LookupRequest,
        legacy: bool = Query(False, description="Return a bare list of flat records"),
    ) -> Any:
        """Look up the ASNs listed in the request body."""
        if not body.asns:
            raise ValidationError("no ASNs provided in request body")
        return lookup_service.lookup(body.asns, legacy=legacy)

    return _app


# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------


def build_app(server: ServerConfig, sources: SourcesConfig) -> FastAPI:
    """Load the initial snapshot and build an app with a background refresher.

    The initial fetch blocks; if it fails the error propagates and the server
    never binds.

    Raises:
        FetchError: If the initial dataset cannot be built.
    """
    mode = DatasetMode.SIMPLIFIED if server.simplified else DatasetMode.FULL
    adapter = ProviderAdapter(sources)
    logger.info("Loading initial %s dataset ...", mode.value)
    snapshot = asyncio.run(adapter.fetch(mode))

    store = SnapshotStore(snapshot)
    refresher = BackgroundRefresher(
        store,
        adapter,
        mode=mode,
        interval=server.refresh_secs,
        retries=server.refresh_retries,
        retry_delay=server.retry_delay,
    )
    if refresher.interval != server.refresh_secs:
        logger.warning(
            "Refresh interval %ds is below the minimum, using %ds",
            server.refresh_secs,
            refresher.interval,
        )
    return create_app(
        store,
        max_asns=server.max_asns,
        cors_origins=server.cors_origins,
        refresher=refresher,
    )


def run_server(server: ServerConfig, sources: SourcesConfig) -> None:
    """Build the app (cold-start fetch included) and serve it with uvicorn.

    Args:
        server: Bind address, refresh and lookup settings.
        sources: Upstream dataset locations.
    """
    app = build_app(server, sources)
    logger.info("Serving on http://%s:%d", server.host, server.port)
    # Requests are logged by the app middleware; uvicorn reuses the ASNINFO handlers.
    uvicorn.run(app, host=server.host, port=server.port, log_config=None, access_log=False)
