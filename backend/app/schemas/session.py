"""Session schemas for MentorMatch."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class SessionBase(BaseModel):
    title: str
    description: str
    subject: str
    duration_minutes: int
    price: Decimal
    max_students: int = 1
    date: date
    time: str


class SessionCreate(SessionBase):
    pass


class SessionRead(SessionBase):
    id: int
    mentor_id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MentorSummary(BaseModel):
    full_name: str
    language: str


class ActiveSessionRead(SessionRead):
    booking_count: int
    spots_remaining: int
    mentor: MentorSummary


class SessionBookingRead(BaseModel):
    id: int
    student_id: int
    student_email: Optional[str] = None
    status: str
    booked_date: date
    booked_time: str
    payment_evidence_ref: Optional[str] = None
    created_at: datetime


class MentorSessionRead(SessionRead):
    booking_count: int
    bookings: List[SessionBookingRead] = []


class TimeSlotRead(BaseModel):
    start_time: str
    end_time: str
