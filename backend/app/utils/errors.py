from typing import Dict, Optional
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
    error_code: Optional[str] = None,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    if error_code:
        detail["code"] = error_code
    return HTTPException(status_code=code, detail=detail)


class BookingError(Exception):
    """Base class for business-rule failures surfaced to the caller.

    ``code`` is stable and machine readable so the UI layer can render a
    specific reason; ``http_status`` is what the API layer responds with.
    """

    code = "booking_error"
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.field_errors = field_errors or {}

    def to_http(self) -> HTTPException:
        return error_response(self.message, self.field_errors, self.http_status, self.code)


class ValidationError(BookingError):
    code = "validation_error"
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(BookingError):
    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(BookingError):
    code = "forbidden"
    http_status = status.HTTP_403_FORBIDDEN


class ConflictError(BookingError):
    """The requested slot overlaps another active booking of the chef."""

    code = "slot_conflict"
    http_status = status.HTTP_409_CONFLICT


class InvalidTransitionError(BookingError):
    code = "invalid_transition"
    http_status = status.HTTP_409_CONFLICT


class ConcurrentModificationError(BookingError):
    """Another writer changed the booking between our read and our write."""

    code = "concurrent_modification"
    http_status = status.HTTP_409_CONFLICT


class InsufficientFundsError(BookingError):
    code = "insufficient_funds"
    http_status = status.HTTP_400_BAD_REQUEST


class NoPayoutMethodError(BookingError):
    code = "no_payout_method"
    http_status = status.HTTP_400_BAD_REQUEST


class StorageError(BookingError):
    code = "storage_unavailable"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
