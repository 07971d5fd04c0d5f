"""Typed errors for the booking lifecycle.

Every rejection carries a stable ``code`` and an ``ErrorCategory`` so the API
layer can render "session full", "already booked", "file too large" and the
rest distinctly instead of matching on message strings.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERMISSION = "permission"
    EXTERNAL = "external"


class MentorMatchError(Exception):
    """Base exception for all booking lifecycle failures."""

    code = "ERROR"
    category = ErrorCategory.CONFLICT
    http_status = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_response(self) -> dict:
        body = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }
        if self.details:
            body["details"] = self.details
        return {"error": body}


# Validation (bad input shape or range, rejected before any mutation)


class ValidationError(MentorMatchError):
    code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION
    http_status = 400

    def __init__(self, message: str, field: Optional[str] = None, **details: Any):
        if field is not None:
            details["field"] = field
        super().__init__(message, **details)
        self.field = field


class InvalidDateError(ValidationError):
    code = "INVALID_DATE"


class InvalidTimeSlotError(ValidationError):
    code = "INVALID_TIME_SLOT"


class PayloadTooLargeError(ValidationError):
    code = "PAYLOAD_TOO_LARGE"
    http_status = 413


class UnsupportedMediaTypeError(ValidationError):
    code = "UNSUPPORTED_MEDIA_TYPE"
    http_status = 415


# Not found


class NotFoundError(MentorMatchError):
    code = "NOT_FOUND"
    category = ErrorCategory.NOT_FOUND
    http_status = 404


class SessionNotFoundError(NotFoundError):
    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: int):
        super().__init__("Session not found", session_id=session_id)


class BookingNotFoundError(NotFoundError):
    code = "BOOKING_NOT_FOUND"

    def __init__(self, booking_id: int):
        super().__init__("Booking not found", booking_id=booking_id)


# Conflict (state-dependent, detected inside the mutating critical section)


class ConflictError(MentorMatchError):
    code = "CONFLICT"
    category = ErrorCategory.CONFLICT
    http_status = 409


class SessionInactiveError(ConflictError):
    code = "SESSION_INACTIVE"

    def __init__(self, session_id: int):
        super().__init__("Session is not available", session_id=session_id)


class DuplicateBookingError(ConflictError):
    code = "ALREADY_BOOKED"

    def __init__(self, session_id: int, student_id: int):
        super().__init__("You have already booked this session", session_id=session_id, student_id=student_id)


class CapacityExceededError(ConflictError):
    code = "SESSION_FULL"

    def __init__(self, session_id: int, max_students: int):
        super().__init__("Session is fully booked", session_id=session_id, max_students=max_students)


class InvalidBookingStateError(ConflictError):
    code = "INVALID_BOOKING_STATE"

    def __init__(self, booking_id: int, status: str, action: str):
        super().__init__(
            f"Cannot {action} a booking in status {status}",
            booking_id=booking_id,
            status=status,
        )


class AlreadyConfirmedError(InvalidBookingStateError):
    code = "ALREADY_CONFIRMED"

    def __init__(self, booking_id: int):
        super().__init__(booking_id, "CONFIRMED", "submit payment for")
        self.message = "Payment has already been confirmed for this booking"
        self.args = (self.message,)


# Permission


class PermissionDeniedError(MentorMatchError):
    code = "PERMISSION_DENIED"
    category = ErrorCategory.PERMISSION
    http_status = 403


# External collaborators


class StorageError(MentorMatchError):
    code = "STORAGE_ERROR"
    category = ErrorCategory.EXTERNAL
    http_status = 502
