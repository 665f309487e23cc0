from typing import Any, Optional


class AppError(Exception):
    """
    Base class for business-rule failures raised by the service layer.
    The HTTP boundary maps `status_code` and `error_code` onto the error envelope.
    """
    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, data: Any = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.data = data


class ValidationError(AppError):
    """Caller-fixable input, e.g. an illegal status transition."""
    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    status_code = 404
    default_code = "NOT_FOUND"


class ForbiddenError(AppError):
    status_code = 403
    default_code = "FORBIDDEN"


class ConflictError(AppError):
    """Business-rule collision. `data` carries what the caller needs to reconcile."""
    status_code = 409
    default_code = "CONFLICT"
