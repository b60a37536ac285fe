"""
Error Taxonomy and Global Error Handling

This module defines the domain exceptions raised by the retrieval core and the
application-wide exception handlers that map them to HTTP responses.

Taxonomy
--------
- NotFoundError          -> 404, mutation targets an unknown document id
- UpstreamError          -> 502, embedding or completion gateway failed
- StoreUnavailableError  -> 503, durable store read/write failed

"No corpus loaded" and "below threshold" are retrieval outcomes, not errors.
See `course_rag.index.retrieval.RetrievalStatus`.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("rag.errors")


# ---------------------------------------------------------------------
# Domain Exceptions
# ---------------------------------------------------------------------

class RagError(RuntimeError):
    """Base error for the retrieval core."""

    status_code: int = 500
    error_code: str = "internal_server_error"


class NotFoundError(RagError):
    """Raised when a mutation targets a document id with no metadata."""

    status_code = 404
    error_code = "not_found"


class UpstreamError(RagError):
    """Raised when an external model gateway returns a non-success result."""

    status_code = 502
    error_code = "upstream_failure"


class StoreUnavailableError(RagError):
    """Raised when the durable store cannot be read or written."""

    status_code = 503
    error_code = "store_unavailable"


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def rag_error_handler(
    request: Request,
    exc: RagError,
) -> JSONResponse:
    """
    Map a domain error to its HTTP status.

    The exception message is returned to the caller. Domain errors are raised
    with caller-safe messages; transport details stay in the log.
    """
    if exc.status_code >= 500:
        logger.warning(
            "%s during request: %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc,
        )

    payload: Dict[str, Any] = {
        "error": exc.error_code,
        "detail": str(exc),
    }

    return JSONResponse(
        status_code=exc.status_code,
        content=payload,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
