# tailorshop/errors.py
"""
Service-level exceptions.

Every business failure is a subclass of ServiceError so the HTTP layer can
render them uniformly: each class carries the status code and the short
machine-readable reason sent back to the caller.
"""

from typing import Dict, List, Optional


class ServiceError(Exception):
    status_code = 500
    reason = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Input failed structural or business validation."""

    status_code = 400
    reason = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[List[Dict[str, str]]] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or []


class LimitExceededError(ServiceError):
    """An attachment collection is already at its cap."""

    status_code = 400
    reason = "limit_exceeded"


class InvalidTypeError(ServiceError):
    """An uploaded file has a content type the owner does not accept."""

    status_code = 400
    reason = "invalid_type"


class NotFoundError(ServiceError):
    status_code = 404
    reason = "not_found"


class ConflictError(ServiceError):
    """Unique-constraint clash or a delete blocked by dependent rows."""

    status_code = 409
    reason = "conflict"


class PersistenceError(ServiceError):
    status_code = 500
    reason = "persistence_error"
