"""
Service Error Taxonomy

Every business-rule failure raised by a service is a ``ServiceError`` carrying
a machine-readable ``error_code`` and the HTTP ``status_code`` routers should
answer with. Modules subclass the five categories below for their specific
failures so callers can branch on either the category or the concrete class.

Categories:
- ValidationError (400): input or precondition not satisfied
- ForbiddenError (403): role or ownership mismatch
- NotFoundError (404): entity does not exist (or is soft-deleted)
- ConflictError (409): state does not permit the operation
- ExhaustionError (500): bounded retry gave up
"""

from typing import Any


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ServiceError):
    def __init__(
        self,
        message: str,
        error_code: str = "VALIDATION_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, status_code=400, details=details)


class ForbiddenError(ServiceError):
    def __init__(self, message: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(message, error_code, status_code=403)


class NotFoundError(ServiceError):
    def __init__(self, message: str, error_code: str = "NOT_FOUND"):
        super().__init__(message, error_code, status_code=404)


class ConflictError(ServiceError):
    def __init__(
        self,
        message: str,
        error_code: str = "CONFLICT",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, status_code=409, details=details)


class ExhaustionError(ServiceError):
    def __init__(self, message: str, error_code: str = "RETRIES_EXHAUSTED"):
        super().__init__(message, error_code, status_code=500)
