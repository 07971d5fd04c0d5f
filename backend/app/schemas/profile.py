"""Onboarding profile schemas."""

from decimal import Decimal
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SkillLevel = Literal["BEGINNER", "INTERMEDIATE", "ADVANCED"]


class MentorProfileBase(BaseModel):
    full_name: str = Field(min_length=1)
    age: int = Field(ge=1, le=100)
    contact_number: str = Field(min_length=1)
    expertise: str = Field(min_length=1)
    experience: int = Field(ge=0)
    bio: str = Field(min_length=1)
    hourly_rate: Decimal = Field(ge=0)
    preferred_language: str = "English"


class MentorProfileUpsert(MentorProfileBase):
    pass


class MentorProfileRead(MentorProfileBase):
    id: int
    user_id: int

    model_config = ConfigDict(from_attributes=True)


class StudentProfileBase(BaseModel):
    full_name: str = Field(min_length=1)
    age: int = Field(ge=1, le=100)
    contact_number: str = Field(min_length=1)
    current_education_level: Literal["GRADE_9", "ORDINARY_LEVEL", "ADVANCED_LEVEL"]
    school: str = Field(min_length=1)
    subjects_of_interest: str = Field(min_length=1)
    current_year: int = Field(ge=1)
    skill_levels: Dict[str, SkillLevel] = {}
    preferred_learning_style: Literal["VISUAL", "HANDS_ON", "THEORETICAL", "MIXED"]
    learning_disabilities: Optional[str] = None


class StudentProfileUpsert(StudentProfileBase):
    pass


class StudentProfileRead(StudentProfileBase):
    id: int
    user_id: int

    model_config = ConfigDict(from_attributes=True)
