"""
Error taxonomy for the reservation, order, payment and check-in core.

Service code raises these; the public core operations turn them into failed
``OperationResult`` objects (see ``app.services.results``) and the HTTP layer
maps ``code`` to a status code.
"""
from typing import Iterable, List, Optional


class BookingError(Exception):
    code = "booking_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    code = "validation_error"
    status_code = 400


class NotFound(BookingError):
    code = "not_found"
    status_code = 404


class Forbidden(BookingError):
    code = "forbidden"
    status_code = 403


class SeatConflict(BookingError):
    code = "seat_conflict"
    status_code = 409

    def __init__(self, message: str, conflicting: Optional[Iterable[int]] = None):
        super().__init__(message)
        self.conflicting: List[int] = sorted(set(conflicting or []))


class AlreadyPaid(BookingError):
    code = "already_paid"
    status_code = 409


class PaymentExists(BookingError):
    code = "payment_exists"
    status_code = 409


class InvalidTransition(BookingError):
    code = "invalid_transition"
    status_code = 409


class PersistenceError(BookingError):
    code = "persistence_error"
    status_code = 500


ERROR_STATUS_CODES = {
    cls.code: cls.status_code
    for cls in (
        ValidationError,
        NotFound,
        Forbidden,
        SeatConflict,
        AlreadyPaid,
        PaymentExists,
        InvalidTransition,
        PersistenceError,
    )
}


def as_int(value, field: str) -> int:
    """`int(value)` for caller input, raising ValidationError on junk."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer, got {value!r}") from None
