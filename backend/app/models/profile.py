"""Onboarding profiles for mentors and students."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class MentorProfile(Base):
    __tablename__ = "mentor_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    full_name = Column(String(200), nullable=False)
    age = Column(Integer, nullable=False)
    contact_number = Column(String(50), nullable=False)
    expertise = Column(String(500), nullable=False)
    experience = Column(Integer, nullable=False, default=0)
    bio = Column(Text, nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    preferred_language = Column(String(50), nullable=False, default="English")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="mentor_profile")


class StudentProfile(Base):
    __tablename__ = "student_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    full_name = Column(String(200), nullable=False)
    age = Column(Integer, nullable=False)
    contact_number = Column(String(50), nullable=False)
    current_education_level = Column(String(30), nullable=False)
    school = Column(String(200), nullable=False)
    subjects_of_interest = Column(String(500), nullable=False)
    current_year = Column(Integer, nullable=False)
    skill_levels = Column(JSON, nullable=False, default=dict)
    preferred_learning_style = Column(String(30), nullable=False)
    learning_disabilities = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="student_profile")
