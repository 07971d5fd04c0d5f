"""Role dependencies layered on top of the authenticated user."""

from fastapi import Depends, HTTPException, status

from backend.app.core.security import get_current_user
from backend.app.models.user import User, UserRole


def get_current_student(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.STUDENT:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student access required")
    return current_user


def get_current_mentor(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.MENTOR:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Mentor access required")
    return current_user
