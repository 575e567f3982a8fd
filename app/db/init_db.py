from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.database import SessionLocal, init_db
from app.services.repository import MoodRepository
from app.utils.logging import setup_logger

logger = setup_logger(__name__)

DEMO_USERNAME = "demo_user"

SAMPLE_ENTRIES = [
    {"mood_score": 7, "emotions": ["happy", "content"], "notes": "Had a great day at work!"},
    {"mood_score": 5, "emotions": ["neutral", "tired"], "notes": "Feeling a bit tired today"},
    {"mood_score": 8, "emotions": ["excited", "energetic"], "notes": "Looking forward to the weekend"},
]


def create_sample_data(db: Optional[Session] = None) -> bool:
    """Create demo_user with a few mood entries. Returns False if it already exists."""
    session = db or SessionLocal()
    try:
        repository = MoodRepository(session)
        if repository.get_user_by_username(DEMO_USERNAME) is not None:
            logger.info("Sample data already exists, skipping")
            return False

        user = repository.create_user({"username": DEMO_USERNAME, "email": "demo@moodscale.app"})
        for entry in SAMPLE_ENTRIES:
            repository.create_mood_entry({"user_id": user.id, **entry})
        logger.info(f"Created sample data for user {user.id}")
        return True
    finally:
        if db is None:
            session.close()


def setup_database(sample_data: bool = False, bind: Optional[Engine] = None) -> None:
    """Initialize database tables, optionally seeding demo data"""
    init_db(bind)
    if sample_data:
        create_sample_data()


if __name__ == "__main__":
    setup_database(sample_data=True)
