"""FastAPI application factory and entrypoint."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notification_center.api.routes import api_router, root_router
from notification_center.core.config import settings
from notification_center.core.db import dispose_engine
from notification_center.core.errors import register_exception_handlers
from notification_center.core.logging import configure_logging
from notification_center.core.metrics import setup_metrics
from notification_center.core.middleware import (
    AccessLogMiddleware,
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from notification_center.core.version import APP_VERSION

ALLOWED_METHODS = ["GET", "PATCH", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Authorization", "Content-Type", "Accept", "X-Request-ID"]

configure_logging(settings.log_level)


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""

    application = FastAPI(
        title=settings.project_name,
        debug=settings.debug,
        version=APP_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    register_exception_handlers(application)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        max_age=86400,
    )

    setup_metrics(application)

    application.add_middleware(
        SecurityHeadersMiddleware,
        enable_hsts=settings.environment in {"staging", "production"},
    )
    application.add_middleware(AccessLogMiddleware)
    application.add_middleware(
        RequestSizeLimitMiddleware,
        max_request_bytes=settings.max_request_bytes,
    )
    application.add_middleware(RequestIDMiddleware)

    application.include_router(root_router)
    application.include_router(api_router)

    @application.on_event("shutdown")
    async def _dispose_database() -> None:
        await dispose_engine()

    return application


app = create_app()

__all__ = ["app", "create_app"]
