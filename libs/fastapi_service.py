"""
FastAPI Service Factory

Builds the feedback API application: CORS, /health, Prometheus /metrics with
per-route request counters, and the mapping of domain errors onto
``{"success": false, "error": {"code": ..., "message": ...}}`` bodies.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Dict, List

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from common.errors import FeedbackServiceError

logger = logging.getLogger(__name__)


def _origins_from_env() -> List[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


@dataclass
class ServiceAppConfig:
    """Settings for one FastAPI service app."""

    title: str
    description: str
    service_name: str
    version: str = "1.0.0"
    allow_origins: List[str] = field(default_factory=_origins_from_env)
    enable_metrics: bool = True


class ServiceMetrics:
    """Prometheus collectors kept in a per-app registry."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        self.registry = CollectorRegistry()

        self.requests = Counter(
            "http_requests_total",
            "HTTP requests by route template and status",
            ["service", "method", "route", "http_status"],
            registry=self.registry,
        )
        self.latency = Histogram(
            "http_request_duration_seconds",
            "Request latency in seconds by route template",
            ["service", "route"],
            registry=self.registry,
        )
        self.errors = Counter(
            "domain_errors_total",
            "Structured error responses by error code",
            ["service", "code"],
            registry=self.registry,
        )
        self.business: Dict[str, Counter] = {}

    def observe(self, method: str, route: str, status_code: int, duration: float):
        self.requests.labels(self.service_name, method, route, status_code).inc()
        self.latency.labels(self.service_name, route).observe(duration)

    def count_error(self, code: str):
        self.errors.labels(self.service_name, code).inc()

    def render(self) -> bytes:
        return generate_latest(self.registry)


def error_body(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}}


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


class FastAPIServiceFactory:
    """
    Creates a configured FastAPI app and owns its metrics registry.

    Services call ``create_app()`` once, then register their own routes and
    business counters via ``add_business_metric``.
    """

    def __init__(self, config: ServiceAppConfig):
        self.config = config
        self.metrics = ServiceMetrics(config.service_name) if config.enable_metrics else None

    def create_app(self) -> FastAPI:
        app = FastAPI(
            title=self.config.title,
            description=self.config.description,
            version=self.config.version,
        )

        app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._add_health_endpoint(app)
        self._add_error_handlers(app)

        if self.metrics is not None:
            self._add_metrics_middleware(app)
            self._add_metrics_endpoint(app)

        app.state.metrics = self.metrics
        app.state.service_name = self.config.service_name
        return app

    def _add_metrics_middleware(self, app: FastAPI):
        metrics = self.metrics

        @app.middleware("http")
        async def prometheus_middleware(request: Request, call_next):
            start = time.perf_counter()
            response = await call_next(request)

            # Route template, not the raw path: reference codes and ids vary per call
            route = getattr(request.scope.get("route"), "path", "unmatched")
            metrics.observe(request.method, route, response.status_code, time.perf_counter() - start)
            return response

    def _add_metrics_endpoint(self, app: FastAPI):
        metrics = self.metrics

        @app.get("/metrics", include_in_schema=False)
        async def metrics_endpoint():
            return Response(content=metrics.render(), media_type=CONTENT_TYPE_LATEST)

    def _add_health_endpoint(self, app: FastAPI):
        service_name = self.config.service_name

        @app.get("/health")
        async def health_check():
            return {"status": "ok", "service": service_name}

    def _add_error_handlers(self, app: FastAPI):
        metrics = self.metrics

        @app.exception_handler(FeedbackServiceError)
        async def feedback_service_error_handler(request: Request, exc: FeedbackServiceError):
            if exc.status_code >= 500:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            if metrics is not None:
                metrics.count_error(exc.code)
            return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message))

        @app.exception_handler(RequestValidationError)
        async def validation_error_handler(request: Request, exc: RequestValidationError):
            if metrics is not None:
                metrics.count_error("VALIDATION_ERROR")
            return JSONResponse(
                status_code=422,
                content=error_body("VALIDATION_ERROR", _describe_validation_error(exc)),
            )

    def add_business_metric(self, name: str, description: str, labels: List[str] = None) -> Counter:
        """
        Register a business counter in this app's registry.

        Raises:
            ValueError: If metrics are disabled for the service
        """
        if self.metrics is None:
            raise ValueError("Metrics not enabled for this service")

        counter = Counter(name, description, labels or [], registry=self.metrics.registry)
        self.metrics.business[name] = counter
        return counter
