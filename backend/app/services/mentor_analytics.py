"""Mentor dashboard figures folded from sessions and bookings."""

from collections import defaultdict
from decimal import Decimal

from sqlalchemy.orm import Session

from backend.app.models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from backend.app.models.session import Session as SessionModel

PAID_STATUSES = {BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value}


def get_mentor_analytics(db: Session, *, mentor_id: int) -> dict:
    sessions = db.query(SessionModel).filter(SessionModel.mentor_id == mentor_id).all()
    session_by_id = {s.id: s for s in sessions}

    bookings = []
    if session_by_id:
        bookings = db.query(Booking).filter(Booking.session_id.in_(list(session_by_id))).all()

    by_status = {status.value: 0 for status in BookingStatus}
    by_subject: dict = defaultdict(int)
    by_date: dict = defaultdict(int)
    seats_taken_by_session: dict = defaultdict(int)
    revenue = Decimal("0.00")

    for booking in bookings:
        session_obj = session_by_id[booking.session_id]
        by_status[booking.status] = by_status.get(booking.status, 0) + 1
        if booking.status in PAID_STATUSES:
            revenue += Decimal(session_obj.price or 0)
        if booking.status == BookingStatus.CANCELLED.value:
            continue
        by_subject[session_obj.subject] += 1
        by_date[booking.booked_date.isoformat()] += 1
        if booking.status in ACTIVE_STATUSES:
            seats_taken_by_session[booking.session_id] += 1

    active_sessions = [s for s in sessions if s.is_active]
    seats_offered = sum(s.max_students for s in active_sessions)
    seats_taken = sum(min(seats_taken_by_session[s.id], s.max_students) for s in active_sessions)
    fill_rate = round(seats_taken / seats_offered, 4) if seats_offered else 0.0

    return {
        "total_sessions": len(sessions),
        "active_sessions": len(active_sessions),
        "total_bookings": len(bookings),
        "bookings_by_status": by_status,
        "confirmed_revenue": revenue.quantize(Decimal("0.01")),
        "seats_offered": seats_offered,
        "seats_taken": seats_taken,
        "fill_rate": fill_rate,
        "bookings_by_subject": [
            {"subject": subject, "bookings": count}
            for subject, count in sorted(by_subject.items(), key=lambda item: (-item[1], item[0]))
        ],
        "bookings_by_date": [{"date": day, "bookings": by_date[day]} for day in sorted(by_date)],
    }
