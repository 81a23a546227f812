"""JSON envelope helpers and exception handlers.

Every endpoint answers with ``{"success": bool, "data" | "message", ...}``.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .downstream import DownstreamError
from .errors import ServiceError
from .logging_config import get_logger

logger = get_logger(__name__)


def success_response(data: Any = None, message: Optional[str] = None, **extra: Any) -> dict:
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonable_encoder(body)


def list_response(items: list, **extra: Any) -> dict:
    return success_response(items, count=len(items), **extra)


def error_body(message: str, error: Optional[str] = None, details: Any = None) -> dict:
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    if details is not None:
        body["details"] = details
    return jsonable_encoder(body)


def setup_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, details=exc.details),
        )

    @app.exception_handler(DownstreamError)
    async def downstream_error_handler(request: Request, exc: DownstreamError):
        logger.warning(
            f"Downstream dependency failed during {request.method} {request.url.path}",
            extra={"extra_fields": {"service": exc.service, "status_code": exc.status_code}},
        )
        return JSONResponse(
            status_code=502,
            content=error_body(f"{exc.service} unavailable", error=exc.message),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_body("Invalid request", details=exc.errors()),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=error_body("Internal server error", error=str(exc)),
        )
