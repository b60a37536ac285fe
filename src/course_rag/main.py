"""
Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures CORS and exception handling, and provides a test-friendly
application factory.

Design Goals
------------
- Explicit dependency initialization order
- Centralized router registration
- Domain errors mapped to deterministic status codes
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .core.errors import RagError, rag_error_handler, unhandled_exception_handler
from .store.sql import SqlKVStore
from .api import (
    admin_routes,
    chat_routes,
    health_routes,
)
from .api.dependencies import get_kv_store


logger = logging.getLogger("rag.app")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Prepare the durable store on startup and release it on shutdown.

    Honors dependency overrides so tests can substitute the store.
    """
    logger.info("Starting course-rag")

    store = app.dependency_overrides.get(get_kv_store, get_kv_store)()
    if isinstance(store, SqlKVStore):
        await store.create_all()

    if not settings.openai_api_key.get_secret_value():
        logger.warning("OPENAI_API_KEY is not set; chat and ingest will fail")
    if not settings.admin_token.get_secret_value():
        logger.warning("ADMIN_TOKEN is not set; admin endpoints are disabled")

    yield

    logger.info("Shutting down course-rag")
    await store.close()


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    app = FastAPI(
        title="course-rag",
        version="1.0.0",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # CORS
    # --------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Admin-Token"],
    )

    # --------------------------------------------------------------
    # Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(RagError, rag_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(admin_routes.router)
    app.include_router(chat_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
