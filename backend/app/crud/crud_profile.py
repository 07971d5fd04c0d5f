"""CRUD operations for onboarding profiles."""

from typing import Optional, Type, Union

from sqlalchemy.orm import Session

from backend.app.models.profile import MentorProfile, StudentProfile
from backend.app.schemas.profile import MentorProfileUpsert, StudentProfileUpsert

ProfileModel = Union[MentorProfile, StudentProfile]
ProfileUpsert = Union[MentorProfileUpsert, StudentProfileUpsert]


class CRUDProfile:
    def __init__(self, model: Type[ProfileModel]):
        self.model = model

    def get(self, db: Session, *, user_id: int) -> Optional[ProfileModel]:
        return db.query(self.model).filter(self.model.user_id == user_id).first()

    def upsert(self, db: Session, *, user_id: int, obj_in: ProfileUpsert) -> ProfileModel:
        data = obj_in.model_dump()
        obj = self.get(db, user_id=user_id)
        if obj is None:
            obj = self.model(user_id=user_id, **data)
            db.add(obj)
        else:
            for field, value in data.items():
                setattr(obj, field, value)
        db.commit()
        db.refresh(obj)
        return obj


mentor_profile_crud = CRUDProfile(MentorProfile)
student_profile_crud = CRUDProfile(StudentProfile)
