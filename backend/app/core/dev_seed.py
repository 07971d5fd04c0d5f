import logging
import os
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.core.time import utc_today
from backend.app.models.profile import MentorProfile
from backend.app.models.session import Session as SessionModel
from backend.app.models.user import User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_DEV_PASSWORD = "password123"
DEFAULT_DEV_MENTORS = [
    {
        "email": "sarah.johnson@example.com",
        "full_name": "Sarah Johnson",
        "age": 35,
        "contact_number": "+1234567890",
        "expertise": "Mathematics, Physics, Chemistry",
        "experience": 12,
        "bio": "Mathematics teacher helping students through complex concepts.",
        "hourly_rate": Decimal("150.00"),
        "session": {"title": "Calculus Fundamentals", "subject": "Mathematics", "duration_minutes": 60, "price": Decimal("150.00"), "max_students": 3, "time": "10:00", "days_ahead": 1},
    },
    {
        "email": "michael.chen@example.com",
        "full_name": "Michael Chen",
        "age": 28,
        "contact_number": "+1234567891",
        "expertise": "Computer Science, Programming, Web Development",
        "experience": 8,
        "bio": "Software engineer teaching coding fundamentals.",
        "hourly_rate": Decimal("180.00"),
        "session": {"title": "Python for Beginners", "subject": "Programming", "duration_minutes": 90, "price": Decimal("180.00"), "max_students": 5, "time": "14:00", "days_ahead": 7},
    },
]
DEFAULT_DEV_STUDENT = "student@example.com"


def ensure_dev_seed(db: Session) -> None:
    """
    Create sample mentors, their sessions and one student for local development.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    created = False
    today = utc_today()
    for entry in DEFAULT_DEV_MENTORS:
        if db.query(User).filter(User.email == entry["email"]).first():
            continue
        mentor = User(
            email=entry["email"],
            hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
            role=UserRole.MENTOR.value,
            is_active=True,
        )
        mentor.mentor_profile = MentorProfile(
            full_name=entry["full_name"],
            age=entry["age"],
            contact_number=entry["contact_number"],
            expertise=entry["expertise"],
            experience=entry["experience"],
            bio=entry["bio"],
            hourly_rate=entry["hourly_rate"],
        )
        db.add(mentor)
        db.flush()
        offering = entry["session"]
        db.add(
            SessionModel(
                mentor_id=mentor.id,
                title=offering["title"],
                description=f"{offering['title']} with {entry['full_name']}",
                subject=offering["subject"],
                duration_minutes=offering["duration_minutes"],
                price=offering["price"],
                max_students=offering["max_students"],
                date=today + timedelta(days=offering["days_ahead"]),
                time=offering["time"],
                is_active=True,
            )
        )
        created = True

    if not db.query(User).filter(User.email == DEFAULT_DEV_STUDENT).first():
        db.add(
            User(
                email=DEFAULT_DEV_STUDENT,
                hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
                role=UserRole.STUDENT.value,
                is_active=True,
            )
        )
        created = True

    if created:
        db.commit()
        logger.info("Seeded development mentors, sessions and student")
