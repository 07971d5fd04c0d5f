"""Booking ledger: the state machine behind every reservation.

States: PENDING (initial) -> CONFIRMED -> COMPLETED, and PENDING/CONFIRMED ->
CANCELLED. CANCELLED and COMPLETED are terminal. Only this module writes
``Booking.status``.

Overbooking is the one race with a real consequence here, so the duplicate
check, the capacity count and the insert for a session always run as one
critical section: an in-process mutex keyed by session id plus a
``SELECT ... FOR UPDATE`` on the session row, so other processes sharing a
PostgreSQL database queue behind the same row. Status changes on an existing
booking go through conditional ``UPDATE ... WHERE status IN (...)``
statements, serialized per booking id, so a cancel and a payment
confirmation for the same booking can never both win.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from backend.app.core.errors import (
    BookingNotFoundError,
    CapacityExceededError,
    DuplicateBookingError,
    InvalidBookingStateError,
    InvalidDateError,
    InvalidTimeSlotError,
    PermissionDeniedError,
    SessionInactiveError,
    SessionNotFoundError,
    ValidationError,
)
from backend.app.core.locks import booking_lock_key, booking_locks, session_lock_key
from backend.app.core.time import utc_now, utc_today
from backend.app.models.booking import ACTIVE_STATUSES, TERMINAL_STATUSES, Booking, BookingStatus
from backend.app.models.session import Session as SessionModel
from backend.app.models.user import User
from backend.app.services.time_slots import format_minutes, is_valid_slot, parse_clock_time

logger = logging.getLogger(__name__)


def _status_values(statuses: Iterable) -> List[str]:
    return [s.value if isinstance(s, BookingStatus) else str(s) for s in statuses]


def booking_count_for_session(db: Session, session_id: int, statuses: Iterable = ACTIVE_STATUSES) -> int:
    """Count bookings for a session in the given statuses (seat holders by default).

    Always a fresh aggregate over the bookings table, the same query the
    capacity check in request_booking uses.
    """
    return (
        db.query(func.count(Booking.id))
        .filter(Booking.session_id == session_id, Booking.status.in_(_status_values(statuses)))
        .scalar()
        or 0
    )


def booking_counts_for_sessions(
    db: Session, session_ids: Iterable[int], statuses: Iterable = ACTIVE_STATUSES
) -> Dict[int, int]:
    ids = list(session_ids)
    if not ids:
        return {}
    rows = (
        db.query(Booking.session_id, func.count(Booking.id))
        .filter(Booking.session_id.in_(ids), Booking.status.in_(_status_values(statuses)))
        .group_by(Booking.session_id)
        .all()
    )
    return {session_id: count for session_id, count in rows}


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = (
        db.query(Booking)
        .options(joinedload(Booking.session))
        .filter(Booking.id == booking_id)
        .populate_existing()
        .first()
    )
    if booking is None:
        raise BookingNotFoundError(booking_id)
    return booking


def list_bookings_for_student(db: Session, student_id: int) -> List[Booking]:
    return (
        db.query(Booking)
        .options(joinedload(Booking.session).joinedload(SessionModel.mentor).joinedload(User.mentor_profile))
        .filter(Booking.student_id == student_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .all()
    )


def _lock_session(db: Session, session_id: int) -> SessionModel:
    session_obj = (
        db.query(SessionModel)
        .filter(SessionModel.id == session_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if session_obj is None:
        raise SessionNotFoundError(session_id)
    return session_obj


def _transition(db: Session, booking_id: int, from_statuses: Iterable, values: dict) -> bool:
    """Apply values to the booking only if it is still in one of from_statuses.

    Returns True when the row changed. Does not commit.
    """
    values = dict(values)
    values["updated_at"] = utc_now()
    changed = (
        db.query(Booking)
        .filter(Booking.id == booking_id, Booking.status.in_(_status_values(from_statuses)))
        .update(values, synchronize_session=False)
    )
    return changed == 1


def _reserve_seat(
    db: Session,
    session_id: int,
    student_id: int,
    booked_date: date,
    booked_time: str,
    today: date,
) -> Booking:
    session_obj = _lock_session(db, session_id)
    if not session_obj.is_active:
        raise SessionInactiveError(session_id)
    if booked_date < today:
        raise InvalidDateError("Booking date cannot be in the past", field="booked_date")
    if session_obj.date < today:
        raise InvalidDateError("Session has already passed", field="booked_date")
    if not is_valid_slot(session_obj.duration_minutes, booked_time):
        raise InvalidTimeSlotError(
            f"'{booked_time}' is not an available slot for a {session_obj.duration_minutes}-minute session",
            field="booked_time",
        )
    slot_start = format_minutes(parse_clock_time(booked_time))

    existing = (
        db.query(Booking)
        .filter(Booking.session_id == session_id, Booking.student_id == student_id)
        .populate_existing()
        .first()
    )
    if existing is not None and existing.status != BookingStatus.CANCELLED.value:
        raise DuplicateBookingError(session_id, student_id)

    taken = booking_count_for_session(db, session_id)
    if taken >= session_obj.max_students:
        raise CapacityExceededError(session_id, session_obj.max_students)

    if existing is not None:
        # One row per (session, student): a cancelled claim is reopened in place.
        reopened = _transition(
            db,
            existing.id,
            {BookingStatus.CANCELLED},
            {
                "status": BookingStatus.PENDING.value,
                "booked_date": booked_date,
                "booked_time": slot_start,
                "payment_evidence_ref": None,
            },
        )
        if not reopened:
            raise DuplicateBookingError(session_id, student_id)
        return existing

    booking = Booking(
        session_id=session_id,
        student_id=student_id,
        status=BookingStatus.PENDING.value,
        booked_date=booked_date,
        booked_time=slot_start,
        payment_evidence_ref=None,
    )
    db.add(booking)
    db.flush()
    return booking


def request_booking(
    db: Session,
    session_id: int,
    student_id: int,
    booked_date: date,
    booked_time: str,
    today: Optional[date] = None,
) -> Booking:
    """Reserve a seat on a session for a student, creating a PENDING booking.

    Raises:
        SessionNotFoundError, SessionInactiveError, InvalidDateError,
        InvalidTimeSlotError, DuplicateBookingError, CapacityExceededError
    """
    today = today or utc_today()
    with booking_locks.hold(session_lock_key(session_id)):
        try:
            booking = _reserve_seat(db, session_id, student_id, booked_date, booked_time, today)
            db.commit()
        except IntegrityError:
            # Unique (session_id, student_id) hit by a writer outside this process.
            db.rollback()
            raise DuplicateBookingError(session_id, student_id)
        except Exception:
            db.rollback()
            raise
    db.refresh(booking)
    logger.info(
        "Booking reserved",
        extra={"booking_id": booking.id, "session_id": session_id, "student_id": student_id, "status": booking.status},
    )
    return booking


def cancel_booking(db: Session, booking_id: int, actor_id: int) -> Booking:
    """Cancel a PENDING or CONFIRMED booking.

    Allowed for the student who holds the booking and for the mentor who owns
    the session. Cancelling an already cancelled booking is a no-op.

    Raises:
        BookingNotFoundError, PermissionDeniedError, InvalidBookingStateError
    """
    with booking_locks.hold(booking_lock_key(booking_id)):
        try:
            booking = get_booking(db, booking_id)
            if actor_id not in (booking.student_id, booking.session.mentor_id):
                raise PermissionDeniedError("Unauthorized to update this booking", booking_id=booking_id)
            if booking.status == BookingStatus.CANCELLED.value:
                db.rollback()
                return booking
            if booking.status in TERMINAL_STATUSES:
                raise InvalidBookingStateError(booking_id, booking.status, "cancel")
            if not _transition(db, booking_id, ACTIVE_STATUSES, {"status": BookingStatus.CANCELLED.value}):
                raise InvalidBookingStateError(booking_id, booking.status, "cancel")
            db.commit()
        except Exception:
            db.rollback()
            raise
    db.refresh(booking)
    logger.info(
        "Booking cancelled",
        extra={"booking_id": booking_id, "session_id": booking.session_id, "status": booking.status},
    )
    return booking


def confirm_booking(db: Session, booking_id: int, evidence_ref: str) -> bool:
    """Move a PENDING booking to CONFIRMED and record its evidence reference.

    Status and evidence are written by one conditional update and committed
    together. Returns False, with nothing written, when the booking is no
    longer PENDING. Callers hold the booking's mutex.
    """
    if not evidence_ref:
        raise ValidationError("Evidence reference is required", field="payment_evidence_ref")
    try:
        applied = _transition(
            db,
            booking_id,
            {BookingStatus.PENDING},
            {"status": BookingStatus.CONFIRMED.value, "payment_evidence_ref": evidence_ref},
        )
        if not applied:
            db.rollback()
            return False
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Booking confirmed", extra={"booking_id": booking_id, "status": BookingStatus.CONFIRMED.value})
    return True


def complete_booking(db: Session, booking_id: int, actor_id: int, today: Optional[date] = None) -> Booking:
    """Mark a CONFIRMED booking COMPLETED once its session has taken place.

    Raises:
        BookingNotFoundError, PermissionDeniedError, InvalidBookingStateError, InvalidDateError
    """
    today = today or utc_today()
    with booking_locks.hold(booking_lock_key(booking_id)):
        try:
            booking = get_booking(db, booking_id)
            if actor_id != booking.session.mentor_id:
                raise PermissionDeniedError("Only the session's mentor can complete a booking", booking_id=booking_id)
            if booking.status != BookingStatus.CONFIRMED.value:
                raise InvalidBookingStateError(booking_id, booking.status, "complete")
            if booking.session.date > today:
                raise InvalidDateError("Session has not taken place yet", field="date")
            if not _transition(db, booking_id, {BookingStatus.CONFIRMED}, {"status": BookingStatus.COMPLETED.value}):
                raise InvalidBookingStateError(booking_id, booking.status, "complete")
            db.commit()
        except Exception:
            db.rollback()
            raise
    db.refresh(booking)
    logger.info("Booking completed", extra={"booking_id": booking_id, "status": booking.status})
    return booking
