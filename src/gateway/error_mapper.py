"""Error mapper: every failure leaves the API as one envelope shape.

- PravadoError subclasses carry their own status/code/details.
- FastAPI request validation errors become 400 VALIDATION_ERROR.
- Starlette HTTP errors (unknown route, wrong method) keep their status
  and headers, so a 405 still carries Allow.
- Anything else becomes 500 INTERNAL_ERROR with a generic message; the
  original exception is logged server-side only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.gateway.envelope import fail
from src.shared.errors import PravadoError
from src.shared.logging.error_handler import log_structured_error
from src.shared.trace_context import get_request_id

if TYPE_CHECKING:
    from fastapi import FastAPI, Request
    from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


def _org_id(request: Request) -> str:
    return str(getattr(request.state, "org_id", "") or "")


def unhandled_error_response(request: Request, exc: BaseException) -> JSONResponse:
    """Log an unexpected exception and answer 500 INTERNAL_ERROR."""
    log_structured_error(
        logger,
        exc,
        error_code="INTERNAL_ERROR",
        request_id=get_request_id(),
        org_id=_org_id(request),
        context={"method": request.method, "path": request.url.path},
    )
    return fail("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE, 500)


def install_error_handlers(app: FastAPI) -> None:
    """Register the envelope-producing exception handlers on app."""

    @app.exception_handler(PravadoError)
    async def _pravado_error(request: Request, exc: PravadoError) -> JSONResponse:
        if exc.http_status >= 500:
            log_structured_error(
                logger,
                exc,
                request_id=get_request_id(),
                org_id=_org_id(request),
                context={"method": request.method, "path": request.url.path},
            )
        return fail(exc.code, exc.message, exc.http_status, exc.details)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {
                "path": list(err.get("loc", ())),
                "message": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        return fail("VALIDATION_ERROR", "Invalid request", 400, details)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return fail(
            _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"),
            exc.detail or f"HTTP {exc.status_code}",
            exc.status_code,
            headers=exc.headers,
        )
