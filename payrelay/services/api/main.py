"""Public entrypoint hosting the intent builder and the webhook relay.

Run with `payrelay-server`, or `uvicorn --factory payrelay.services.api.main:create_app`.
"""

from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payrelay.common.config import RelaySettings, load_settings
from payrelay.common.errors import RelayError
from payrelay.common.logging import configure_logging, logger, request_id_ctx
from payrelay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
)
from payrelay.common.startup import log_startup_config
from payrelay.common.tracing import instrument_app, setup_tracing
from payrelay.services.intent.processor import PayomatixClient
from payrelay.services.intent.routes import router as intent_router
from payrelay.services.intent.service import IntentService
from payrelay.services.webhook.routes import router as webhook_router
from payrelay.services.webhook.service import BackendClient, WebhookRelayService


def create_app(
    settings: RelaySettings | None = None,
    processor_transport: httpx.AsyncBaseTransport | None = None,
    backend_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Wire settings, outbound clients and routes into one FastAPI app."""

    if settings is None:
        settings = load_settings()
    configure_logging(settings)
    setup_tracing(settings)
    log_startup_config(settings)

    payomatix = PayomatixClient(settings, transport=processor_transport)
    backend = BackendClient(settings, transport=backend_transport)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        """Close outbound HTTP clients with the application lifecycle."""

        yield
        await payomatix.close()
        await backend.close()

    app = FastAPI(title="PayRelay", lifespan=lifespan)
    app.state.settings = settings
    app.state.intent_service = IntentService(settings, payomatix)
    app.state.webhook_service = WebhookRelayService(settings, backend)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Record request count and latency and tag logs with a request id."""

        start = perf_counter()
        route = request.url.path
        method = request.method
        status_code = 500
        token = request_id_ctx.set(request.headers.get("x-request-id") or str(uuid4()))
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=settings.service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=settings.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()
            request_id_ctx.reset(token)

    @app.exception_handler(RelayError)
    async def relay_error_handler(_: Request, exc: RelayError):
        """Render taxonomy errors in the caller-facing JSON shape."""

        if exc.status_code >= 500:
            logger.error("request failed status=%s message=%s", exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.body())

    app.include_router(intent_router)
    app.include_router(webhook_router)

    @app.get("/health")
    def health():
        """Liveness endpoint for the container runtime."""

        return {"ok": True}

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    instrument_app(app)
    return app


def run() -> None:
    """Console entrypoint: serve the app on the configured host/port."""

    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
