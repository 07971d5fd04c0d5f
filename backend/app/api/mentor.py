"""Mentor-only endpoints: publishing sessions and the dashboard."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.api.serializers import serialize_mentor_listing
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_mentor
from backend.app.models.user import User
from backend.app.schemas.analytics import MentorAnalyticsRead
from backend.app.schemas.session import MentorSessionRead, SessionCreate, SessionRead
from backend.app.services.mentor_analytics import get_mentor_analytics
from backend.app.services.session_catalog import create_session, list_sessions_for_mentor

router = APIRouter(prefix="/mentor", tags=["mentor"])


@router.post("/sessions", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
def create_mentor_session(
    session_in: SessionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_mentor),
):
    return create_session(db, current_user.id, session_in)


@router.get("/sessions", response_model=List[MentorSessionRead])
def list_mentor_sessions(db: Session = Depends(get_db), current_user: User = Depends(get_current_mentor)):
    return [serialize_mentor_listing(listing) for listing in list_sessions_for_mentor(db, current_user.id)]


@router.get("/analytics", response_model=MentorAnalyticsRead)
def mentor_analytics(db: Session = Depends(get_db), current_user: User = Depends(get_current_mentor)):
    return get_mentor_analytics(db, mentor_id=current_user.id)
