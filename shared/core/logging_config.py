"""
Structured logging configuration shared by every service.

Log records are emitted as one JSON object per line on stdout so they can be
shipped to ELK / CloudWatch / Datadog without a parser. Request, correlation
and acting-user identifiers live in context variables; the request middleware
fills them and the downstream HTTP client forwards them to sibling services.
"""

import json
import logging
import logging.handlers
import os
import sys
import time
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"
USER_ID_HEADER = "X-User-ID"

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


class StructuredFormatter(logging.Formatter):
    """JSON formatter; one object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "@timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": os.getenv("SERVICE_NAME", "unknown-service"),
            "environment": os.getenv("ENVIRONMENT", "development"),
            "version": os.getenv("SERVICE_VERSION", "1.0.0"),
        }

        trace_context = current_trace_context()
        if trace_context:
            log_obj["trace"] = trace_context

        log_obj["location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
            "module": record.module,
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        if hasattr(record, "extra_fields"):
            log_obj["custom"] = record.extra_fields

        if hasattr(record, "duration_ms"):
            log_obj["performance"] = {"duration_ms": record.duration_ms}

        return json.dumps(log_obj, default=str)


class PerformanceFilter(logging.Filter):
    """Converts a ``duration`` extra (seconds) into ``duration_ms``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if hasattr(record, "duration"):
            record.duration_ms = record.duration * 1000
        return True


class SecurityFilter(logging.Filter):
    """Redacts sensitive values passed through ``extra_fields``."""

    SENSITIVE_FIELDS = (
        "password", "password_hash", "token", "api_key", "secret",
        "authorization", "cookie", "session",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        fields = getattr(record, "extra_fields", None)
        if isinstance(fields, dict):
            record.extra_fields = {
                key: ("***REDACTED***" if key.lower() in self.SENSITIVE_FIELDS else value)
                for key, value in fields.items()
            }
        return True


def setup_logging(
    service_name: str,
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Setup structured logging for a service.

    Args:
        service_name: Name reported in every record
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Enable stdout output
        enable_file: Enable rotating file output
        log_file: Path to log file
    """
    os.environ["SERVICE_NAME"] = service_name

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []

    formatter = StructuredFormatter()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(PerformanceFilter())
        console_handler.addFilter(SecurityFilter())
        root_logger.addHandler(console_handler)

    if enable_file and log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10485760,  # 10MB
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(PerformanceFilter())
        file_handler.addFilter(SecurityFilter())
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized",
        extra={
            "extra_fields": {
                "service": service_name,
                "level": level,
                "handlers": {"console": enable_console, "file": enable_file},
            }
        },
    )


class LoggerAdapter(logging.LoggerAdapter):
    """Injects the current request context into ``extra``."""

    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})
        extra.update(current_trace_context())
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})


def current_trace_context() -> Dict[str, str]:
    context = {}
    request_id = request_id_var.get()
    if request_id:
        context["request_id"] = request_id
    correlation_id = correlation_id_var.get()
    if correlation_id:
        context["correlation_id"] = correlation_id
    user_id = user_id_var.get()
    if user_id:
        context["user_id"] = user_id
    return context


def propagation_headers() -> Dict[str, str]:
    """Headers that carry the current request context to a sibling service."""
    headers = {}
    request_id = request_id_var.get()
    if request_id:
        headers[REQUEST_ID_HEADER] = request_id
    # The originating request id doubles as correlation id for the first hop
    correlation_id = correlation_id_var.get() or request_id
    if correlation_id:
        headers[CORRELATION_ID_HEADER] = correlation_id
    user_id = user_id_var.get()
    if user_id:
        headers[USER_ID_HEADER] = user_id
    return headers


def set_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> None:
    request_id_var.set(request_id)
    correlation_id_var.set(correlation_id)
    user_id_var.set(user_id)


def current_user_id() -> Optional[str]:
    return user_id_var.get()


def generate_request_id() -> str:
    return str(uuid.uuid4())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request and response, assigns a request id and
    stores the trace headers in context for the duration of the call.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_context(
            request_id=request_id,
            correlation_id=request.headers.get(CORRELATION_ID_HEADER),
            user_id=request.headers.get(USER_ID_HEADER),
        )

        logger = get_logger(__name__)
        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "extra_fields": {
                    "method": request.method,
                    "path": request.url.path,
                    "client_host": request.client.host if request.client else None,
                }
            },
        )

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                exc_info=True,
                extra={
                    "extra_fields": {
                        "method": request.method,
                        "path": request.url.path,
                        "duration_ms": (time.time() - start_time) * 1000,
                    }
                },
            )
            raise

        duration = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={
                "duration": duration,
                "extra_fields": {
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                },
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
