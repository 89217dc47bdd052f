"""Domain exceptions raised by the service layer and mapped to HTTP responses by the API."""
from __future__ import annotations

from typing import Any


class HealthcareError(Exception):
    status_code = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationError(HealthcareError, ValueError):
    status_code = 400


class ConflictError(HealthcareError):
    """Duplicate resource: 400 by default, 409 for booking clashes."""
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None, **extra: Any) -> None:
        super().__init__(message, **extra)
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(HealthcareError):
    status_code = 404


class PermissionDeniedError(HealthcareError):
    status_code = 403


class AuthenticationError(HealthcareError):
    status_code = 401


class PayloadTooLargeError(HealthcareError):
    status_code = 413
