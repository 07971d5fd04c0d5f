"""Session model: a mentor-published, capacity-limited teaching offering."""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class Session(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    subject = Column(String(100), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    max_students = Column(Integer, nullable=False, default=1)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    mentor = relationship("User", back_populates="sessions", foreign_keys=[mentor_id])
    bookings = relationship("Booking", back_populates="session", order_by="Booking.created_at")

    __table_args__ = (
        CheckConstraint("max_students >= 1", name="ck_sessions_max_students"),
        CheckConstraint("duration_minutes >= 15", name="ck_sessions_duration"),
        CheckConstraint("price >= 0", name="ck_sessions_price"),
    )
