"""
FastAPI application for the Libris platform.

This is the HTTP API the library dashboard and student pages talk to.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from libris import __version__
from libris.api.middleware import SessionMiddleware, request_logging_middleware
from libris.auth.errors import Internal, SessionError
from libris.auth.routes import owner_router, router as auth_router
from libris.auth.session import SessionStore
from libris.branches.routes import router as branches_router
from libris.config import Settings, get_settings
from libris.core.logging import configure_logging
from libris.integrations.sentry import capture_exception, init_sentry
from libris.storage import StorageError, StorageProvider, create_local_storage

logger = logging.getLogger(__name__)


def internal_error(detail: str | None = None) -> JSONResponse:
    """Generic 500 body; backend error text never reaches the client."""
    exc = Internal(detail) if detail else Internal()
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app(
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
) -> FastAPI:
    """
    Build the application.

    Storage defaults to the in-memory backends; production wiring passes
    its own StorageProvider.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        if init_sentry(settings):
            logger.info("Sentry error tracking enabled")
        logger.info(f"Libris API starting in {settings.environment} mode")
        yield
        logger.info("Libris API shutting down")

    app = FastAPI(
        title="Libris API",
        description="Multi-tenant library management",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.storage = storage if storage is not None else create_local_storage()
    app.state.session_store = SessionStore(
        app.state.storage.cache,
        ttl_seconds=settings.session_ttl_seconds,
    )

    # Middleware: last added runs first
    app.add_middleware(
        SessionMiddleware,
        cookie_name=settings.session_cookie_name,
        max_age=settings.session_ttl_seconds,
        secure=settings.session_cookie_secure,
    )
    app.middleware("http")(request_logging_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(owner_router)
    app.include_router(branches_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "libris-api"}

    # =========================================================================
    # Error handlers
    # =========================================================================

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("request.storage_error path=%s error=%s", request.url.path, exc)
        capture_exception(exc, path=request.url.path)
        return internal_error()

    @app.exception_handler(SessionError)
    async def session_error_handler(request: Request, exc: SessionError) -> JSONResponse:
        logger.error("request.session_error path=%s error=%s", request.url.path, exc)
        return internal_error(exc.detail)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        capture_exception(exc, path=request.url.path)
        return internal_error()

    return app
