"""Booking endpoints: reserve, upload payment, cancel, complete."""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from backend.app.api.serializers import serialize_student_booking
from backend.app.core.security import get_current_user
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_mentor, get_current_student
from backend.app.models.user import User
from backend.app.schemas.booking import BookingCreate, BookingRead, StudentBookingRead
from backend.app.services import booking_ledger
from backend.app.services.blob_store import BlobStore, get_blob_store
from backend.app.services.payment_confirmation import MAX_EVIDENCE_BYTES, submit_payment_evidence

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
):
    return booking_ledger.request_booking(
        db,
        session_id=booking_in.session_id,
        student_id=current_user.id,
        booked_date=booking_in.booked_date,
        booked_time=booking_in.booked_time,
    )


@router.get("/", response_model=List[StudentBookingRead])
def list_my_bookings(db: Session = Depends(get_db), current_user: User = Depends(get_current_student)):
    return [serialize_student_booking(b) for b in booking_ledger.list_bookings_for_student(db, current_user.id)]


@router.post("/{booking_id}/payment-evidence", response_model=BookingRead)
def upload_payment_evidence(
    booking_id: int,
    payment_slip: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
    blob_store: BlobStore = Depends(get_blob_store),
):
    # One byte past the limit is enough to reject without reading the whole upload.
    evidence = payment_slip.file.read(MAX_EVIDENCE_BYTES + 1)
    return submit_payment_evidence(
        db,
        booking_id=booking_id,
        student_id=current_user.id,
        evidence=evidence,
        mime_type=payment_slip.content_type,
        blob_store=blob_store,
    )


@router.post("/{booking_id}/cancel", response_model=BookingRead)
def cancel_booking(booking_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return booking_ledger.cancel_booking(db, booking_id, actor_id=current_user.id)


@router.post("/{booking_id}/complete", response_model=BookingRead)
def complete_booking(booking_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_mentor)):
    return booking_ledger.complete_booking(db, booking_id, actor_id=current_user.id)
