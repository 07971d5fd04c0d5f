"""Shape ORM rows into the read models the frontend renders."""

from backend.app.models.booking import Booking
from backend.app.models.session import Session as SessionModel
from backend.app.models.user import User
from backend.app.schemas.booking import BookingRead
from backend.app.schemas.session import SessionRead
from backend.app.services.session_catalog import SessionListing


def mentor_summary(mentor: User | None) -> dict:
    profile = getattr(mentor, "mentor_profile", None)
    return {
        "full_name": profile.full_name if profile else "Unknown Mentor",
        "language": profile.preferred_language if profile else "English",
    }


def serialize_active_listing(listing: SessionListing) -> dict:
    data = SessionRead.model_validate(listing.session).model_dump()
    data["booking_count"] = listing.booking_count
    data["spots_remaining"] = listing.spots_remaining
    data["mentor"] = mentor_summary(listing.session.mentor)
    return data


def serialize_mentor_listing(listing: SessionListing) -> dict:
    data = SessionRead.model_validate(listing.session).model_dump()
    data["booking_count"] = listing.booking_count
    data["bookings"] = [
        {
            "id": booking.id,
            "student_id": booking.student_id,
            "student_email": booking.student.email if booking.student else None,
            "status": booking.status,
            "booked_date": booking.booked_date,
            "booked_time": booking.booked_time,
            "payment_evidence_ref": booking.payment_evidence_ref,
            "created_at": booking.created_at,
        }
        for booking in listing.session.bookings
    ]
    return data


def serialize_student_booking(booking: Booking) -> dict:
    data = BookingRead.model_validate(booking).model_dump()
    session_obj: SessionModel = booking.session
    data["session"] = {
        "id": session_obj.id,
        "title": session_obj.title,
        "description": session_obj.description,
        "subject": session_obj.subject,
        "duration_minutes": session_obj.duration_minutes,
        "price": session_obj.price,
        "date": session_obj.date,
        "time": session_obj.time,
        "mentor": mentor_summary(session_obj.mentor),
    }
    return data
