from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.user import User  # noqa: F401
from backend.app.models.profile import MentorProfile, StudentProfile  # noqa: F401
from backend.app.models.session import Session  # noqa: F401
from backend.app.models.booking import Booking  # noqa: F401
