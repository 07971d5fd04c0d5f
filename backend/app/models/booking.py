"""Booking model: a student's claim on a Session."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Bookings that hold a seat against the session's capacity.
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value})
TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value})


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    booked_date = Column(Date, nullable=False)
    booked_time = Column(String(5), nullable=False)
    payment_evidence_ref = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    session = relationship("Session", back_populates="bookings")
    student = relationship("User", back_populates="bookings", foreign_keys=[student_id])

    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_bookings_session_student"),
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'CANCELLED', 'COMPLETED')",
            name="ck_bookings_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, session={self.session_id}, student={self.student_id}, status={self.status})>"
