"""FastAPI application for the Glance server."""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from glance.core.types import ErrorEnvelope
from glance.errors import ErrorInfo, ErrorKind
from glance.server.ratelimit import FixedWindowRateLimiter
from glance.server.routes import analyze, health

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from glance.config import GlanceConfig
    from glance.core.pipeline import AnalysisPipeline

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RATE_LIMITED_PATHS = ("/analyze", "/mcp/tools/")


def client_identity(request: Request, *, trust_forwarded_for: bool = False) -> str:
    """Socket peer address, or the first X-Forwarded-For hop when trusted."""
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client is not None:
        return request.client.host
    return "unknown"


class GlanceServer:
    """Owns the FastAPI app and its shared, read-only collaborators."""

    def __init__(
        self,
        config: "GlanceConfig",
        pipeline: "AnalysisPipeline",
    ):
        self._config = config
        self._pipeline = pipeline
        self._rate_limiter: FixedWindowRateLimiter | None = None
        if config.rate_limit.enabled:
            self._rate_limiter = FixedWindowRateLimiter(
                window_ms=config.rate_limit.window_ms,
                max_requests=config.rate_limit.max_requests,
            )
        self._app = self._create_app()

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application."""
        return self._app

    def _create_app(self) -> FastAPI:
        @asynccontextmanager
        async def lifespan(app: FastAPI) -> "AsyncIterator[None]":
            logger.info(
                "server_starting",
                extra={
                    "provider": self._config.model.provider,
                    "model": self._config.model.model_id,
                },
            )
            yield
            logger.info("server_stopping")

        app = FastAPI(
            title="Glance",
            description="Visual question answering API",
            version=analyze.SERVICE_VERSION,
            lifespan=lifespan,
        )

        app.state.server = self
        app.state.config = self._config
        app.state.pipeline = self._pipeline

        app.middleware("http")(self._rate_limit)
        app.middleware("http")(self._assign_request_id)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(self._config.server.cors_origins),
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
            expose_headers=[REQUEST_ID_HEADER],
        )

        app.include_router(health.router, tags=["health"])
        app.include_router(analyze.router, tags=["analyze"])
        return app

    async def _assign_request_id(
        self,
        request: Request,
        call_next: "Callable[[Request], Awaitable[Response]]",
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    async def _rate_limit(
        self,
        request: Request,
        call_next: "Callable[[Request], Awaitable[Response]]",
    ) -> Response:
        if (
            self._rate_limiter is None
            or request.method != "POST"
            or not request.url.path.startswith(RATE_LIMITED_PATHS)
        ):
            return await call_next(request)

        client = client_identity(
            request, trust_forwarded_for=self._config.server.trust_forwarded_for
        )
        decision = await self._rate_limiter.hit(client)
        if decision.allowed:
            return await call_next(request)

        logger.warning(
            "rate_limited",
            extra={"client": client, "limit": decision.limit},
        )
        envelope = ErrorEnvelope.from_info(
            ErrorInfo(
                kind=ErrorKind.RATE_LIMITED,
                code="rate_limited",
                message="Too many requests, please try again later",
            ),
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(
            envelope.to_dict(),
            status_code=envelope.http_status,
            headers={"Retry-After": str(max(1, round(decision.reset_after_s)))},
        )


def create_app(
    config: "GlanceConfig",
    pipeline: "AnalysisPipeline | None" = None,
) -> FastAPI:
    """Create the FastAPI application.

    Builds the pipeline from ``config`` unless one is supplied.
    """
    if pipeline is None:
        from glance.core.pipeline import create_pipeline

        pipeline = create_pipeline(config)
    server = GlanceServer(config=config, pipeline=pipeline)
    return server.app
