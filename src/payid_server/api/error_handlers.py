"""Global exception handlers for the private API.

- PayIDError → ``{statusCode, error, message}`` with the error's status
- RequestValidationError → 400 Bad Request listing the failing fields
- Exception (catch-all) → 500 without internal details
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from payid_server.errors.payid_errors import PayIDError

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(PayIDError)
    async def _payid_error_handler(request: Request, exc: PayIDError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=PayIDError(
                _validation_message(exc),
                status_code=status.HTTP_400_BAD_REQUEST,
                code="invalid-request",
            ).to_response(),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=PayIDError("An unexpected error occurred.").to_response(),
        )


def _validation_message(exc: RequestValidationError) -> str:
    """Flatten pydantic errors into ``loc: msg`` pairs."""
    parts = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        msg = error.get("msg", "invalid")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Bad input. " + "; ".join(parts)
