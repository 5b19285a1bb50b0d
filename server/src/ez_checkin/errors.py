"""Domain errors raised by the EZ Check-in services.

Each error knows the HTTP status it maps to so the web layer can render it
without a per-route translation table.
"""

from typing import Dict, Optional


class AppError(Exception):
    """Base class for errors surfaced to callers verbatim"""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    """Unknown form, registration or token"""

    status_code = 404
    error_code = "not_found"


class ValidationError(AppError):
    """Malformed or incomplete submission or form definition"""

    status_code = 400
    error_code = "validation_error"

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.field_errors = field_errors or {}


class MalformedCodeError(AppError):
    """Scanned payload does not match the verification code scheme"""

    status_code = 400
    error_code = "malformed_code"


class UnauthorizedError(AppError):
    """Admin session gate denied the request"""

    status_code = 401
    error_code = "unauthorized"


class ConflictError(AppError):
    """Operation would break a stored invariant"""

    status_code = 409
    error_code = "conflict"
