"""
Domain errors raised by the services and mapped to JSON responses in app.main.

Every error carries a human-readable message (sent to the client as-is) and the
HTTP status the request boundary should answer with.
"""
from typing import Any, Optional


class GymError(Exception):
    status_code = 400

    def __init__(self, message: str, data: Optional[Any] = None, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.data = data
        # Upstream detail (e.g. Paystack's message) shown next to our own message
        self.error = error


class InvalidFormatError(GymError):
    status_code = 400


class AlreadyExistsError(GymError):
    status_code = 409


class NotFoundError(GymError):
    status_code = 404


class InvalidCredentialsError(GymError):
    status_code = 401


class InvalidTokenError(GymError):
    status_code = 401


class ExpiredError(GymError):
    """University record is graduated, inactive, suspended or past its expiry date."""
    status_code = 400


class PermissionDeniedError(GymError):
    status_code = 403


class PlanMismatchError(GymError):
    status_code = 400


class ConflictError(GymError):
    status_code = 409


class PaymentFailedError(GymError):
    status_code = 400


class AmountMismatchError(GymError):
    status_code = 400


class GatewayError(GymError):
    """Paystack could not be reached or rejected the request."""
    status_code = 502


class InvalidSignatureError(GymError):
    status_code = 400
