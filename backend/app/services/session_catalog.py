"""Session catalog: mentor-authored sessions and the listings students browse."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from backend.app.core.errors import SessionNotFoundError, ValidationError
from backend.app.core.time import utc_today
from backend.app.models.booking import Booking
from backend.app.models.session import Session as SessionModel
from backend.app.models.user import User
from backend.app.schemas.session import SessionCreate
from backend.app.services.booking_ledger import booking_counts_for_sessions
from backend.app.services.time_slots import TimeSlot, format_minutes, list_slots, parse_clock_time

logger = logging.getLogger(__name__)

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 240
MIN_STUDENTS = 1
MAX_STUDENTS = 20


@dataclass
class SessionListing:
    """A session together with its live seat usage."""

    session: SessionModel
    booking_count: int

    @property
    def spots_remaining(self) -> int:
        return max(self.session.max_students - self.booking_count, 0)


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required", field=field)
    return str(value).strip()


def _validate_session_fields(fields: SessionCreate, today: date) -> dict:
    title = _require_text(fields.title, "title")
    description = _require_text(fields.description, "description")
    subject = _require_text(fields.subject, "subject")

    if not MIN_DURATION_MINUTES <= fields.duration_minutes <= MAX_DURATION_MINUTES:
        raise ValidationError(
            f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes",
            field="duration_minutes",
        )
    if not MIN_STUDENTS <= fields.max_students <= MAX_STUDENTS:
        raise ValidationError(
            f"Max students must be between {MIN_STUDENTS} and {MAX_STUDENTS}",
            field="max_students",
        )
    try:
        price = Decimal(str(fields.price))
    except (InvalidOperation, ValueError):
        raise ValidationError("Price must be a number", field="price")
    if not price.is_finite() or price < 0:
        raise ValidationError("Price cannot be negative", field="price")
    if fields.date < today:
        raise ValidationError("Session date cannot be in the past", field="date")

    start = parse_clock_time(fields.time)
    return {
        "title": title,
        "description": description,
        "subject": subject,
        "duration_minutes": fields.duration_minutes,
        "price": price.quantize(Decimal("0.01")),
        "max_students": fields.max_students,
        "date": fields.date,
        "time": format_minutes(start),
    }


def create_session(db: Session, mentor_id: int, fields: SessionCreate, today: Optional[date] = None) -> SessionModel:
    """Validate and persist a new active session owned by mentor_id.

    Raises:
        ValidationError: when any field is out of range.
    """
    values = _validate_session_fields(fields, today or utc_today())
    session_obj = SessionModel(mentor_id=mentor_id, is_active=True, **values)
    db.add(session_obj)
    db.commit()
    db.refresh(session_obj)
    logger.info(
        "Session created",
        extra={"session_id": session_obj.id, "mentor_id": mentor_id},
    )
    return session_obj


def get_session(db: Session, session_id: int) -> SessionModel:
    session_obj = db.query(SessionModel).filter(SessionModel.id == session_id).first()
    if session_obj is None:
        raise SessionNotFoundError(session_id)
    return session_obj


def available_slots(db: Session, session_id: int) -> List[TimeSlot]:
    session_obj = get_session(db, session_id)
    return list_slots(session_obj.duration_minutes)


def list_active_sessions(db: Session, excluding_mentor_id: Optional[int] = None) -> List[SessionListing]:
    """Active sessions ordered by date, each with its current PENDING + CONFIRMED count."""
    query = (
        db.query(SessionModel)
        .options(joinedload(SessionModel.mentor).joinedload(User.mentor_profile))
        .filter(SessionModel.is_active.is_(True))
    )
    if excluding_mentor_id is not None:
        query = query.filter(SessionModel.mentor_id != excluding_mentor_id)
    sessions = query.order_by(SessionModel.date.asc(), SessionModel.time.asc(), SessionModel.id.asc()).all()

    counts = booking_counts_for_sessions(db, [s.id for s in sessions])
    return [SessionListing(session=s, booking_count=counts.get(s.id, 0)) for s in sessions]


def list_sessions_for_mentor(db: Session, mentor_id: int) -> List[SessionListing]:
    """The mentor's sessions, newest first, with bookings loaded."""
    sessions = (
        db.query(SessionModel)
        .options(selectinload(SessionModel.bookings).joinedload(Booking.student))
        .filter(SessionModel.mentor_id == mentor_id)
        .order_by(SessionModel.created_at.desc(), SessionModel.id.desc())
        .all()
    )
    counts = booking_counts_for_sessions(db, [s.id for s in sessions])
    return [SessionListing(session=s, booking_count=counts.get(s.id, 0)) for s in sessions]
