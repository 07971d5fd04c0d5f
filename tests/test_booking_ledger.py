from datetime import date, timedelta
from decimal import Decimal

import pytest

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
)
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.booking import Booking, BookingStatus
from backend.app.models.session import Session as SessionModel
from backend.app.models.user import User
from backend.app.services.booking_ledger import (
    booking_count_for_session,
    booking_counts_for_sessions,
    cancel_booking,
    complete_booking,
    confirm_booking,
    get_booking,
    list_bookings_for_student,
    request_booking,
)

TODAY = date(2030, 1, 1)
SESSION_DATE = TODAY + timedelta(days=5)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def _create_user(db, email, role="STUDENT"):
    user = User(email=email, hashed_password="x", role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _create_session(db, mentor_id, max_students=1, duration=60, is_active=True, session_date=SESSION_DATE):
    session_obj = SessionModel(
        mentor_id=mentor_id,
        title="Physics",
        description="Kinematics",
        subject="Physics",
        duration_minutes=duration,
        price=Decimal("40.00"),
        max_students=max_students,
        date=session_date,
        time="10:00",
        is_active=is_active,
    )
    db.add(session_obj)
    db.commit()
    db.refresh(session_obj)
    return session_obj


def _book(db, session_id, student_id, booked_time="10:00", booked_date=SESSION_DATE):
    return request_booking(db, session_id, student_id, booked_date, booked_time, today=TODAY)


def test_request_booking_creates_pending_booking():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        session_obj = _create_session(db, mentor.id)

        booking = _book(db, session_obj.id, student.id)
        assert booking.id is not None
        assert booking.status == BookingStatus.PENDING.value
        assert booking.payment_evidence_ref is None
        assert booking.booked_time == "10:00"
        assert booking_count_for_session(db, session_obj.id) == 1
    finally:
        db.close()


def test_second_request_for_same_pair_is_duplicate():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        session_obj = _create_session(db, mentor.id, max_students=3)

        _book(db, session_obj.id, student.id)
        with pytest.raises(DuplicateBookingError):
            _book(db, session_obj.id, student.id, booked_time="11:00")
        assert booking_count_for_session(db, session_obj.id) == 1
    finally:
        db.close()


def test_capacity_is_enforced():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        students = [_create_user(db, f"s{i}@example.com") for i in range(3)]
        session_obj = _create_session(db, mentor.id, max_students=2)

        _book(db, session_obj.id, students[0].id)
        _book(db, session_obj.id, students[1].id)
        with pytest.raises(CapacityExceededError):
            _book(db, session_obj.id, students[2].id)
        assert booking_count_for_session(db, session_obj.id) == 2
    finally:
        db.close()


def test_rejections_for_missing_inactive_and_past_sessions():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        inactive = _create_session(db, mentor.id, is_active=False)
        past = _create_session(db, mentor.id, session_date=TODAY - timedelta(days=1))
        active = _create_session(db, mentor.id)

        with pytest.raises(SessionNotFoundError):
            _book(db, 9999, student.id)
        with pytest.raises(SessionInactiveError):
            _book(db, inactive.id, student.id)
        with pytest.raises(InvalidDateError):
            _book(db, past.id, student.id)
        with pytest.raises(InvalidDateError):
            _book(db, active.id, student.id, booked_date=TODAY - timedelta(days=1))
        assert db.query(Booking).count() == 0
    finally:
        db.close()


@pytest.mark.parametrize("booked_time", ["17:30", "10:15", "08:30", "18:00", "noon"])
def test_time_must_be_a_generated_slot(booked_time):
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        session_obj = _create_session(db, mentor.id, duration=60)
        with pytest.raises(InvalidTimeSlotError):
            _book(db, session_obj.id, student.id, booked_time=booked_time)
        assert db.query(Booking).count() == 0
    finally:
        db.close()


def test_cancel_frees_capacity_and_is_idempotent():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student_a = _create_user(db, "a@example.com")
        student_b = _create_user(db, "b@example.com")
        session_obj = _create_session(db, mentor.id, max_students=1)

        booking = _book(db, session_obj.id, student_a.id)
        with pytest.raises(CapacityExceededError):
            _book(db, session_obj.id, student_b.id)

        cancelled = cancel_booking(db, booking.id, actor_id=student_a.id)
        assert cancelled.status == BookingStatus.CANCELLED.value
        again = cancel_booking(db, booking.id, actor_id=student_a.id)
        assert again.status == BookingStatus.CANCELLED.value
        assert booking_count_for_session(db, session_obj.id) == 0

        retry = _book(db, session_obj.id, student_b.id)
        assert retry.status == BookingStatus.PENDING.value
    finally:
        db.close()


def test_cancelled_student_can_book_again_on_same_row():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        session_obj = _create_session(db, mentor.id, max_students=1)

        first = _book(db, session_obj.id, student.id)
        cancel_booking(db, first.id, actor_id=student.id)
        again = _book(db, session_obj.id, student.id, booked_time="13:00")
        assert again.id == first.id
        assert again.status == BookingStatus.PENDING.value
        assert again.booked_time == "13:00"
        assert again.payment_evidence_ref is None
        assert db.query(Booking).count() == 1
    finally:
        db.close()


def test_cancel_permissions():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        stranger = _create_user(db, "stranger@example.com")
        session_obj = _create_session(db, mentor.id, max_students=2)

        booking = _book(db, session_obj.id, student.id)
        with pytest.raises(PermissionDeniedError):
            cancel_booking(db, booking.id, actor_id=stranger.id)
        assert get_booking(db, booking.id).status == BookingStatus.PENDING.value

        by_mentor = cancel_booking(db, booking.id, actor_id=mentor.id)
        assert by_mentor.status == BookingStatus.CANCELLED.value

        with pytest.raises(BookingNotFoundError):
            cancel_booking(db, 424242, actor_id=student.id)
    finally:
        db.close()


def test_confirmed_booking_can_be_cancelled_and_completed_cannot():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student_a = _create_user(db, "a@example.com")
        student_b = _create_user(db, "b@example.com")
        session_obj = _create_session(db, mentor.id, max_students=2)

        confirmed = _book(db, session_obj.id, student_a.id)
        assert confirm_booking(db, confirmed.id, "/uploads/payment-slips/a.png") is True
        assert cancel_booking(db, confirmed.id, actor_id=student_a.id).status == BookingStatus.CANCELLED.value

        completed = _book(db, session_obj.id, student_b.id)
        confirm_booking(db, completed.id, "/uploads/payment-slips/b.png")
        complete_booking(db, completed.id, actor_id=mentor.id, today=SESSION_DATE)
        with pytest.raises(InvalidBookingStateError):
            cancel_booking(db, completed.id, actor_id=student_b.id)
    finally:
        db.close()


def test_confirm_booking_only_applies_to_pending():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        session_obj = _create_session(db, mentor.id)

        booking = _book(db, session_obj.id, student.id)
        cancel_booking(db, booking.id, actor_id=student.id)
        assert confirm_booking(db, booking.id, "/uploads/payment-slips/x.pdf") is False
        refreshed = get_booking(db, booking.id)
        assert refreshed.status == BookingStatus.CANCELLED.value
        assert refreshed.payment_evidence_ref is None
    finally:
        db.close()


def test_complete_booking_rules():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        session_obj = _create_session(db, mentor.id)
        booking = _book(db, session_obj.id, student.id)

        with pytest.raises(InvalidBookingStateError):
            complete_booking(db, booking.id, actor_id=mentor.id, today=SESSION_DATE)
        confirm_booking(db, booking.id, "/uploads/payment-slips/x.pdf")
        with pytest.raises(PermissionDeniedError):
            complete_booking(db, booking.id, actor_id=student.id, today=SESSION_DATE)
        with pytest.raises(InvalidDateError):
            complete_booking(db, booking.id, actor_id=mentor.id, today=TODAY)

        done = complete_booking(db, booking.id, actor_id=mentor.id, today=SESSION_DATE)
        assert done.status == BookingStatus.COMPLETED.value
        assert booking_count_for_session(db, session_obj.id) == 0
        assert booking_count_for_session(db, session_obj.id, {BookingStatus.COMPLETED}) == 1
    finally:
        db.close()


def test_completed_pair_cannot_book_again():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        session_obj = _create_session(db, mentor.id, max_students=2)
        booking = _book(db, session_obj.id, student.id)
        confirm_booking(db, booking.id, "/uploads/payment-slips/x.pdf")
        complete_booking(db, booking.id, actor_id=mentor.id, today=SESSION_DATE)

        with pytest.raises(DuplicateBookingError):
            _book(db, session_obj.id, student.id)
    finally:
        db.close()


def test_counts_and_student_listing():
    db = SessionLocal()
    try:
        mentor = _create_user(db, "mentor@example.com", "MENTOR")
        student = _create_user(db, "student@example.com")
        other = _create_user(db, "other@example.com")
        first = _create_session(db, mentor.id, max_students=3)
        second = _create_session(db, mentor.id, max_students=3)

        _book(db, first.id, student.id)
        _book(db, first.id, other.id)
        _book(db, second.id, student.id)

        assert booking_counts_for_sessions(db, [first.id, second.id]) == {first.id: 2, second.id: 1}
        assert booking_counts_for_sessions(db, []) == {}
        mine = list_bookings_for_student(db, student.id)
        assert {b.session_id for b in mine} == {first.id, second.id}
        assert all(b.student_id == student.id for b in mine)
    finally:
        db.close()
