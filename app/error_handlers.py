from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("stateless_session.app")


def _error_title(status_code: int) -> str:
    if status_code >= 500:
        return "Internal server error"
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def register_error_handlers(app: FastAPI) -> None:
    # HTTP errors become responses inside the session middleware, so a written
    # session is still resealed on 4xx. Unhandled errors are answered outside it.
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return await request_validation_exception_handler(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        title = _error_title(exc.status_code)
        if exc.status_code >= 500:
            return JSONResponse({"error": title, "detail": "An error occurred"}, status_code=exc.status_code)
        return JSONResponse(
            {"error": title, "detail": str(exc.detail or title)},
            status_code=exc.status_code,
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": _error_title(500), "detail": "An error occurred"}, status_code=500)
