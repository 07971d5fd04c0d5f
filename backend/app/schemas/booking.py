"""Booking schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from backend.app.schemas.session import MentorSummary


class BookingCreate(BaseModel):
    session_id: int
    booked_date: date
    booked_time: str


class BookingRead(BaseModel):
    id: int
    session_id: int
    student_id: int
    status: str
    booked_date: date
    booked_time: str
    payment_evidence_ref: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookedSessionRead(BaseModel):
    id: int
    title: str
    description: str
    subject: str
    duration_minutes: int
    price: Decimal
    date: date
    time: str
    mentor: MentorSummary


class StudentBookingRead(BookingRead):
    session: BookedSessionRead
