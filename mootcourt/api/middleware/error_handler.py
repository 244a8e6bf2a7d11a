"""
Exception handlers for the MootCourt API.

Every error response, whether raised by a route, produced by request
validation or unexpected, uses the envelope built by
:meth:`MootCourtError.to_payload`.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mootcourt.core.exceptions import MootCourtError

logger = logging.getLogger(__name__)


def error_response(error: MootCourtError, **extra) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={**error.to_payload(), **extra})


def register_error_handlers(app: FastAPI) -> None:
    """Attach the domain, request-validation and catch-all handlers to *app*."""

    @app.exception_handler(MootCourtError)
    async def handle_domain_error(request: Request, exc: MootCourtError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.detail)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
        # Malformed body or params; field-level details go under "errors"
        error = MootCourtError(detail="Request validation failed", code="VALIDATION_ERROR", status_code=422)
        return error_response(error, errors=jsonable_encoder(exc.errors()))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(
            MootCourtError(detail="Internal server error", code="INTERNAL_ERROR", status_code=500)
        )
