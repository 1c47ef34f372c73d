"""
Main FastAPI application for the payment-gated download service.
Serves verify/download/config (also under /api), health, metrics and, optionally, the storefront pages.
"""
from contextlib import asynccontextmanager
import logging
import time
import uuid

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from paygate.api.routes import downloads, health
from paygate.api.static import SiteStaticFiles
from paygate.core.config import Settings
from paygate.core.logging import configure_logging
from paygate.services.factory import build_services
from paygate.utils.metrics import router as metrics_router


logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        http = httpx.AsyncClient(timeout=settings.http_client_timeout)
        services = build_services(settings, http)
        app.state.services = services
        logger.info(
            f"paygate_started: ledger={settings.ledger_backend if services.ledger else 'disabled'}, "
            f"stripe={'on' if settings.stripe_configured else 'off'}"
        )
        try:
            yield
        finally:
            await services.verifier.drain()
            await http.aclose()
            if services.engine is not None:
                services.engine.dispose()

    app = FastAPI(
        title="Paygate API",
        description="Payment-verified downloads",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS: /verify is called from the storefront pages, possibly on another origin
    origins = settings.cors_origins_list or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or uuid.uuid4().hex
        start = time.monotonic()
        response = await call_next(request)
        response.headers[settings.request_id_header] = request_id
        # path only: the query string carries checkout session ids
        logger.info(
            "http_request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_ms": round((time.monotonic() - start) * 1000, 1),
            },
        )
        return response

    # Routers
    app.include_router(health.router, tags=["health"])
    app.include_router(downloads.router)
    app.include_router(downloads.router, prefix="/api")
    app.include_router(metrics_router)

    if settings.static_dir:
        app.mount("/", SiteStaticFiles(directory=settings.static_dir, html=True), name="site")

    return app


app = create_app()
