"""
Error handling and sanitization

Every error leaves the API in the same envelope:
    {"success": false, "message": "...", "data": null}

- Domain errors (FloresYaError) -> their status code and message
- HTTPException / request validation -> kept as-is (safe to expose)
- Anything else -> logged with traceback, generic message to the client
"""
import logging
import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from floresya.core.config import settings
from floresya.core.exceptions import FloresYaError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


def error_response(status_code: int, message: str, data: Optional[Any] = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": data},
        headers=headers,
    )


async def floresya_error_handler(request: Request, exc: FloresYaError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"{exc.code} on {request.method} {request.url.path}: {exc.message} {exc.details}")
    data = {"code": exc.code}
    if exc.details:
        data["details"] = exc.details
    return error_response(exc.status_code, exc.message, data)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", [])[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return error_response(422, "Invalid request data", {"errors": errors})


class ErrorSanitizationMiddleware(BaseHTTPMiddleware):
    """
    Catch unhandled exceptions and sanitize error responses.

    - In production: Returns generic error, logs full details
    - In development: Returns full error for debugging
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            error_id = f"{request.client.host if request.client else 'unknown'}-{id(e)}"
            logger.error(
                f"Unhandled exception [{error_id}]: {type(e).__name__}: {str(e)}\n"
                f"Path: {request.url.path}\n"
                f"Method: {request.method}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            if settings.DEBUG:
                return error_response(
                    500,
                    str(e),
                    {"type": type(e).__name__, "error_id": error_id},
                )
            return error_response(500, GENERIC_ERROR_MESSAGE, {"error_id": error_id})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FloresYaError, floresya_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_middleware(ErrorSanitizationMiddleware)
