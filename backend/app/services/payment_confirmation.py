"""Payment confirmation: the second phase of a booking.

A student uploads a receipt for a PENDING booking; the receipt is stored
through the blob store and the booking moves to CONFIRMED together with the
returned reference. If the booking can no longer be confirmed once the upload
has finished (for example it was cancelled meanwhile), the stored object is
deleted again and the booking keeps its state.
"""

import logging

from sqlalchemy.orm import Session

from backend.app.core.errors import (
    AlreadyConfirmedError,
    InvalidBookingStateError,
    PayloadTooLargeError,
    PermissionDeniedError,
    StorageError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from backend.app.core.locks import booking_lock_key, booking_locks
from backend.app.models.booking import Booking, BookingStatus
from backend.app.services.blob_store import BlobStore
from backend.app.services.booking_ledger import confirm_booking, get_booking

logger = logging.getLogger(__name__)

MAX_EVIDENCE_BYTES = 5 * 1024 * 1024
ALLOWED_EVIDENCE_TYPES = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/gif", "application/pdf"}
)


def normalize_mime_type(mime_type: str | None) -> str:
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def validate_payment_evidence(evidence: bytes, mime_type: str | None) -> str:
    """Check size and type of an uploaded receipt; returns the normalized mime type.

    Runs before any storage or database work.
    """
    if evidence is None or len(evidence) == 0:
        raise ValidationError("Payment slip is required", field="payment_slip")
    if len(evidence) > MAX_EVIDENCE_BYTES:
        raise PayloadTooLargeError(
            "File size must be less than 5MB",
            field="payment_slip",
            max_bytes=MAX_EVIDENCE_BYTES,
        )
    normalized = normalize_mime_type(mime_type)
    if normalized not in ALLOWED_EVIDENCE_TYPES:
        raise UnsupportedMediaTypeError(
            "Only images (JPEG, PNG, GIF) and PDF files are allowed",
            field="payment_slip",
            mime_type=normalized or None,
        )
    return normalized


def _ensure_pending(booking: Booking) -> None:
    if booking.status == BookingStatus.CONFIRMED.value:
        raise AlreadyConfirmedError(booking.id)
    if booking.status != BookingStatus.PENDING.value:
        raise InvalidBookingStateError(booking.id, booking.status, "submit payment for")


def _discard(blob_store: BlobStore, url: str, booking_id: int) -> None:
    try:
        blob_store.delete(url)
    except StorageError:
        logger.exception("Could not discard unconfirmed payment slip %s", url, extra={"booking_id": booking_id})


def submit_payment_evidence(
    db: Session,
    booking_id: int,
    student_id: int,
    evidence: bytes,
    mime_type: str | None,
    blob_store: BlobStore,
) -> Booking:
    """Store a payment receipt and confirm the booking.

    Raises:
        ValidationError, PayloadTooLargeError, UnsupportedMediaTypeError:
            bad upload, nothing stored.
        BookingNotFoundError, PermissionDeniedError: unknown or foreign booking.
        AlreadyConfirmedError: the booking is already confirmed.
        InvalidBookingStateError: the booking is cancelled or completed.
        StorageError: the blob store failed; the booking stays PENDING.
    """
    mime = validate_payment_evidence(evidence, mime_type)

    with booking_locks.hold(booking_lock_key(booking_id)):
        booking = get_booking(db, booking_id)
        if booking.student_id != student_id:
            raise PermissionDeniedError("Unauthorized to update this booking", booking_id=booking_id)
        _ensure_pending(booking)
        db.rollback()

        url = blob_store.store(evidence, mime, name_hint=f"payment_slip_{booking_id}")
        try:
            applied = confirm_booking(db, booking_id, url)
        except Exception:
            _discard(blob_store, url, booking_id)
            raise
        if not applied:
            _discard(blob_store, url, booking_id)
            _ensure_pending(get_booking(db, booking_id))
            raise InvalidBookingStateError(booking_id, BookingStatus.PENDING.value, "confirm")

    booking = get_booking(db, booking_id)
    logger.info(
        "Payment slip uploaded and booking confirmed",
        extra={"booking_id": booking_id, "student_id": student_id, "status": booking.status},
    )
    return booking
