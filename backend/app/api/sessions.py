"""Session browsing endpoints for MentorMatch."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_user
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.session import ActiveSessionRead, TimeSlotRead
from backend.app.services.booking_ledger import booking_count_for_session
from backend.app.services.session_catalog import (
    SessionListing,
    available_slots,
    get_session,
    list_active_sessions,
)
from backend.app.api.serializers import serialize_active_listing

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/", response_model=List[ActiveSessionRead])
def list_sessions(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    listings = list_active_sessions(db, excluding_mentor_id=current_user.id)
    return [serialize_active_listing(listing) for listing in listings]


@router.get("/{session_id}", response_model=ActiveSessionRead)
def read_session(session_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    session_obj = get_session(db, session_id)
    listing = SessionListing(session=session_obj, booking_count=booking_count_for_session(db, session_id))
    return serialize_active_listing(listing)


@router.get("/{session_id}/slots", response_model=List[TimeSlotRead])
def list_session_slots(session_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [
        {"start_time": slot.start_time, "end_time": slot.end_time}
        for slot in available_slots(db, session_id)
    ]
