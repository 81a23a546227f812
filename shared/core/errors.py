"""Error taxonomy shared by the services.

Service classes raise these; ``shared.core.responses`` maps them onto HTTP
status codes and the JSON envelope.
"""

from typing import Any, Optional


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ServiceError):
    status_code = 400


class InsufficientStockError(ValidationError):
    """Raised when requested units exceed available units.

    ``details`` is a list of ``{product_id, sku, requested, available}``.
    """


class InvalidTransitionError(ValidationError):
    pass


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


def reject_nulls(changes: dict, fields) -> None:
    """Raise ``ValidationError`` if a partial update sets a required column to null."""
    nulls = sorted(field for field in fields if field in changes and changes[field] is None)
    if nulls:
        raise ValidationError(f"{', '.join(nulls)} cannot be null", details=nulls)
