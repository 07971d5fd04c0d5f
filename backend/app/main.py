# MentorMatch backend entrypoint: tutoring marketplace booking API.

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from backend.app.core.logging_config import setup_logging
from backend.app.core.settings import get_settings
from backend.app.api import register
from backend.app.api import login
from backend.app.api import profiles
from backend.app.api import sessions
from backend.app.api import mentor
from backend.app.api import bookings
from backend.app.api.error_handlers import register_error_handlers
from backend.app.core.dev_seed import ensure_dev_seed
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine

settings = get_settings()
setup_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(register.router)
app.include_router(login.router)
app.include_router(profiles.router)
app.include_router(sessions.router)
app.include_router(mentor.router)
app.include_router(bookings.router)

# Payment slips written by LocalBlobStore are served back under their reference URL.
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount(settings.upload_url_prefix, StaticFiles(directory=settings.upload_dir), name="payment-slips")


@app.get("/")
def read_root():
    return {"app": "MentorMatch backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def prepare_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_dev_seed(db)
    finally:
        db.close()
    logger.info("%s started (%s)", settings.app_name, settings.environment)
