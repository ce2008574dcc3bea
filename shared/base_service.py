"""
FastAPI skeleton shared by Hallway services.

A service gets structured logging, a per-request id, request metrics,
``/health`` and ``/metrics`` endpoints and uniform error handling.
Subclasses add their own routes and override ``start``, ``stop``,
``_check_dependencies`` and ``_error_response``.
"""

import os
import time
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from shared.config import ServiceConfig, get_config
from shared.errors import HallwayException
from shared.logging import clear_context, configure_logging, get_logger, set_request_id
from shared.metrics import get_metrics_collector

SERVICE_VERSION = "1.0.0"
REQUEST_ID_HEADER = "X-Request-Id"
UNMATCHED_ENDPOINT = "unmatched"


class BaseService:
    """Common service plumbing around a FastAPI application."""

    def __init__(self, service_name: str, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.config = config or get_config(service_name)
        self._started_at = time.monotonic()

        configure_logging(service_name, self.config.stdlib_log_level)
        self.logger = get_logger(service_name)
        self.metrics = get_metrics_collector(service_name)

        local = self.config.env == "local"
        self.app = FastAPI(
            title=f"{service_name.title()} Service",
            version=SERVICE_VERSION,
            docs_url="/docs" if local else None,
            redoc_url="/redoc" if local else None,
            lifespan=self._lifespan,
        )
        self.app.middleware("http")(self._observe_request)
        self.app.add_api_route("/health", self._health, methods=["GET"], include_in_schema=False)
        self.app.add_api_route("/metrics", self._metrics, methods=["GET"], include_in_schema=False)
        self.app.add_exception_handler(HallwayException, self._handle_hallway_error)
        self.app.add_exception_handler(Exception, self._handle_unexpected_error)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self.start()
        try:
            yield
        finally:
            await self.stop()

    async def _observe_request(self, request: Request, call_next):
        """Tag the request with an id, then log and count it."""
        set_request_id(request.headers.get(REQUEST_ID_HEADER))
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed = time.perf_counter() - started

            self.metrics.record_http_request(
                method=request.method,
                endpoint=self._endpoint_label(request),
                status_code=response.status_code,
                duration=elapsed,
            )
            self.logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(elapsed * 1000, 2),
            )
            return response
        finally:
            clear_context()

    @staticmethod
    def _endpoint_label(request: Request) -> str:
        """Path template of the matched route, or ``unmatched``."""
        route = request.scope.get("route")
        return getattr(route, "path", None) or UNMATCHED_ENDPOINT

    async def _health(self):
        try:
            dependencies = await self._check_dependencies()
        except Exception as e:
            self.logger.error("Health check failed", error=str(e))
            self.metrics.record_health_check("error")
            return JSONResponse(
                status_code=503,
                content={"service": self.service_name, "status": "error", "error": str(e)},
            )

        self.metrics.record_health_check("ok")
        return {
            "service": self.service_name,
            "status": "ok",
            "uptime_seconds": self.uptime_seconds,
            "dependencies": dependencies,
            "version": SERVICE_VERSION,
            "commit": os.getenv("GIT_COMMIT", "unknown"),
        }

    async def _metrics(self):
        return Response(content=self.metrics.export(), media_type=CONTENT_TYPE_LATEST)

    async def _handle_hallway_error(self, request: Request, exc: HallwayException):
        log = self.logger.warning if exc.status_code < 500 else self.logger.error
        log("Request failed", code=exc.code, message=exc.message, details=exc.details)
        self.metrics.record_error(exc.code)
        return self._error_response(request, exc.status_code, exc)

    async def _handle_unexpected_error(self, request: Request, exc: Exception):
        self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
        self.metrics.record_error("INTERNAL_ERROR")
        return self._error_response(request, 500, None)

    def _error_response(self, request: Request, status_code: int,
                        exc: Optional[HallwayException]) -> Response:
        """JSON error body; services serving pages override this."""
        if exc is None:
            content = {"code": "INTERNAL_ERROR", "message": "Internal server error", "details": {}}
        else:
            content = exc.to_response().model_dump()
        return JSONResponse(status_code=status_code, content=content)

    async def _check_dependencies(self) -> Dict[str, str]:
        return {}

    async def start(self):
        """Start service components."""

    async def stop(self):
        """Stop service components."""

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_at

    def run(self):
        import uvicorn

        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.stdlib_log_level.lower(),
        )
