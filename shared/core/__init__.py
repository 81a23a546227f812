"""Shared core utilities for the services.

Health checks, structured logging, error envelope, sibling-service HTTP client.
"""

from .downstream import (
    CircuitBreaker,
    CircuitState,
    DownstreamClient,
    DownstreamError,
    DownstreamUnavailable,
    FailurePolicy,
)
from .errors import (
    ConflictError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    ServiceError,
    reject_nulls,
    ValidationError,
)
from .health import HealthStatus, ServiceHealth
from .logging_config import (
    LoggerAdapter,
    RequestLoggingMiddleware,
    current_user_id,
    generate_request_id,
    get_logger,
    set_request_context,
    setup_logging,
)
from .responses import list_response, setup_exception_handlers, success_response

__all__ = [
    # Health checks
    "ServiceHealth",
    "HealthStatus",
    # Logging
    "setup_logging",
    "get_logger",
    "RequestLoggingMiddleware",
    "set_request_context",
    "current_user_id",
    "generate_request_id",
    "LoggerAdapter",
    # Errors and responses
    "ServiceError",
    "ValidationError",
    "InsufficientStockError",
    "InvalidTransitionError",
    "NotFoundError",
    "ConflictError",
    "reject_nulls",
    "success_response",
    "list_response",
    "setup_exception_handlers",
    # Sibling services
    "DownstreamClient",
    "DownstreamError",
    "DownstreamUnavailable",
    "FailurePolicy",
    "CircuitBreaker",
    "CircuitState",
]
