import threading
from datetime import date, timedelta
from decimal import Decimal

import pytest

from backend.app.core.errors import CapacityExceededError, DuplicateBookingError
from backend.app.core.locks import KeyedLock, booking_lock_key, booking_locks
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.booking import Booking, BookingStatus
from backend.app.models.session import Session as SessionModel
from backend.app.models.user import User
from backend.app.services.booking_ledger import (
    booking_count_for_session,
    cancel_booking,
    confirm_booking,
    request_booking,
)

TODAY = date(2030, 1, 1)
SESSION_DATE = TODAY + timedelta(days=2)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def _seed(max_students, student_count):
    db = SessionLocal()
    try:
        mentor = User(email="mentor@example.com", hashed_password="x", role="MENTOR", is_active=True)
        students = [
            User(email=f"student{i}@example.com", hashed_password="x", role="STUDENT", is_active=True)
            for i in range(student_count)
        ]
        db.add(mentor)
        db.add_all(students)
        db.commit()
        session_obj = SessionModel(
            mentor_id=mentor.id,
            title="Chemistry",
            description="Stoichiometry",
            subject="Chemistry",
            duration_minutes=30,
            price=Decimal("25.00"),
            max_students=max_students,
            date=SESSION_DATE,
            time="09:00",
            is_active=True,
        )
        db.add(session_obj)
        db.commit()
        return session_obj.id, [s.id for s in students]
    finally:
        db.close()


def _run_in_threads(target, args_list):
    barrier = threading.Barrier(len(args_list))
    results = [None] * len(args_list)

    def worker(index, args):
        barrier.wait()
        try:
            results[index] = target(*args)
        except Exception as exc:  # collected for assertions
            results[index] = exc

    threads = [threading.Thread(target=worker, args=(i, args)) for i, args in enumerate(args_list)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results


def _book_in_own_session(session_id, student_id):
    db = SessionLocal()
    try:
        booking = request_booking(db, session_id, student_id, SESSION_DATE, "09:00", today=TODAY)
        return booking.id
    finally:
        db.close()


def test_parallel_requests_never_overbook():
    session_id, student_ids = _seed(max_students=3, student_count=10)

    results = _run_in_threads(_book_in_own_session, [(session_id, sid) for sid in student_ids])

    winners = [r for r in results if isinstance(r, int)]
    losers = [r for r in results if not isinstance(r, int)]
    assert len(winners) == 3
    assert len(losers) == 7
    assert all(isinstance(r, CapacityExceededError) for r in losers)

    db = SessionLocal()
    try:
        assert booking_count_for_session(db, session_id) == 3
        assert db.query(Booking).count() == 3
    finally:
        db.close()


def test_parallel_requests_from_one_student_create_one_booking():
    session_id, student_ids = _seed(max_students=5, student_count=1)
    student_id = student_ids[0]

    results = _run_in_threads(_book_in_own_session, [(session_id, student_id)] * 6)

    winners = [r for r in results if isinstance(r, int)]
    assert len(winners) == 1
    assert all(isinstance(r, DuplicateBookingError) for r in results if not isinstance(r, int))

    db = SessionLocal()
    try:
        rows = db.query(Booking).filter(Booking.student_id == student_id).all()
        assert len(rows) == 1
    finally:
        db.close()


def test_cancel_and_confirm_race_has_one_winner():
    session_id, student_ids = _seed(max_students=1, student_count=1)
    student_id = student_ids[0]
    booking_id = _book_in_own_session(session_id, student_id)

    def cancel():
        db = SessionLocal()
        try:
            return cancel_booking(db, booking_id, actor_id=student_id).status
        finally:
            db.close()

    def confirm():
        db = SessionLocal()
        try:
            # confirm_booking expects the caller to hold the booking's mutex.
            with booking_locks.hold(booking_lock_key(booking_id)):
                return confirm_booking(db, booking_id, "/uploads/payment-slips/race.png")
        finally:
            db.close()

    results = _run_in_threads(lambda fn: fn(), [(cancel,), (confirm,)])

    db = SessionLocal()
    try:
        final = db.query(Booking).filter(Booking.id == booking_id).one()
        if results[1] is True:
            # Confirmation landed first; the cancel then cancelled a CONFIRMED booking.
            assert final.status == BookingStatus.CANCELLED.value
            assert final.payment_evidence_ref == "/uploads/payment-slips/race.png"
        else:
            assert results[1] is False
            assert final.status == BookingStatus.CANCELLED.value
            assert final.payment_evidence_ref is None
    finally:
        db.close()


def test_keyed_lock_serializes_same_key_and_cleans_up():
    locks = KeyedLock()
    inside = []
    overlap = []
    guard = threading.Lock()

    def critical(_):
        with locks.hold("session:1:capacity"):
            with guard:
                inside.append(1)
                if len(inside) > 1:
                    overlap.append(True)
            threading.Event().wait(0.01)
            with guard:
                inside.pop()

    _run_in_threads(critical, [(i,) for i in range(8)])
    assert overlap == []
    assert locks.active_keys() == 0


def test_keyed_lock_allows_different_keys_concurrently():
    locks = KeyedLock()
    entered = threading.Event()
    release = threading.Event()

    def hold_first():
        with locks.hold("booking:1:mutex"):
            entered.set()
            release.wait(5)

    thread = threading.Thread(target=hold_first)
    thread.start()
    assert entered.wait(5)
    with locks.hold("booking:2:mutex"):
        assert locks.active_keys() == 2
    release.set()
    thread.join(5)
    assert locks.active_keys() == 0
