"""
Error Taxonomy — Typed, anticipated failures raised by services.

Each error maps to a stable machine-readable ``error_code`` and an HTTP
status. The handlers in ``app.main`` turn them into ``ErrorResponse`` bodies.
"""


class ServiceError(Exception):
    """Base class for every anticipated failure."""

    status_code: int = 400
    error_code: str = "error"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Malformed or missing input."""
    status_code = 400
    error_code = "validation_error"


class ConflictError(ServiceError):
    """Uniqueness violation (national ID, phone number)."""
    status_code = 409
    error_code = "conflict"


class UnauthorizedError(ServiceError):
    """Bad credential, or a bad / expired / wrong-purpose token."""
    status_code = 401
    error_code = "unauthorized"


class NotFoundError(ServiceError):
    status_code = 404
    error_code = "not_found"


class InsufficientFundsError(ServiceError):
    status_code = 400
    error_code = "insufficient_funds"


class IncompleteRegistrationError(ServiceError):
    """The identity exists but has not finished registration."""
    status_code = 400
    error_code = "incomplete_registration"


class UpstreamServiceError(ServiceError):
    """An external collaborator (OCR, image store, SMS, LLM) failed or timed out."""
    status_code = 502
    error_code = "upstream_error"
