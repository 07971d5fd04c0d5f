"""Mentor analytics schemas."""

from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel


class SubjectBookingCount(BaseModel):
    subject: str
    bookings: int


class DailyBookingCount(BaseModel):
    date: str
    bookings: int


class MentorAnalyticsRead(BaseModel):
    total_sessions: int
    active_sessions: int
    total_bookings: int
    bookings_by_status: Dict[str, int]
    confirmed_revenue: Decimal
    seats_offered: int
    seats_taken: int
    fill_rate: float
    bookings_by_subject: List[SubjectBookingCount]
    bookings_by_date: List[DailyBookingCount]
