"""Onboarding endpoints for mentor and student profiles."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.crud.crud_profile import mentor_profile_crud, student_profile_crud
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_mentor, get_current_student
from backend.app.models.user import User
from backend.app.schemas.profile import (
    MentorProfileRead,
    MentorProfileUpsert,
    StudentProfileRead,
    StudentProfileUpsert,
)

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.post("/mentor", response_model=MentorProfileRead, status_code=status.HTTP_201_CREATED)
def upsert_mentor_profile(
    profile_in: MentorProfileUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_mentor),
):
    return mentor_profile_crud.upsert(db, user_id=current_user.id, obj_in=profile_in)


@router.get("/mentor", response_model=MentorProfileRead)
def read_mentor_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_mentor)):
    profile = mentor_profile_crud.get(db, user_id=current_user.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.post("/student", response_model=StudentProfileRead, status_code=status.HTTP_201_CREATED)
def upsert_student_profile(
    profile_in: StudentProfileUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_student),
):
    return student_profile_crud.upsert(db, user_id=current_user.id, obj_in=profile_in)


@router.get("/student", response_model=StudentProfileRead)
def read_student_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_student)):
    profile = student_profile_crud.get(db, user_id=current_user.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile
