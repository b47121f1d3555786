"""
Exception handlers producing a uniform ErrorResponse body.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models.responses import ErrorResponse

logger = logging.getLogger(__name__)


def _body(status_code: int, message: str) -> JSONResponse:
    error = ErrorResponse(error_code=status_code, message=message)
    return JSONResponse(status_code=status_code, content=error.model_dump())


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Keep framework-set statuses (404, 405, ...)
    return _body(exc.status_code, str(exc.detail))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _body(400, f"Bad request: {exc.errors()}")


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _body(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected)
