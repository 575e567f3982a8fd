from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.utils.dates import utcnow
from app.utils.encryption import EncryptedString


class User(Base):
    """SQLAlchemy model for users and their Spotify credentials."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True)
    email = Column(String(255))

    # Spotify connection; tokens are encrypted at rest
    spotify_id = Column(String(255))
    spotify_access_token = Column(EncryptedString)
    spotify_refresh_token = Column(EncryptedString)
    spotify_token_expires_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    mood_entries = relationship(
        "MoodEntry", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True
    )
    music_analyses = relationship(
        "MusicAnalysis", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True
    )
    recommendations = relationship(
        "Recommendation", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True
    )
    personality_insights = relationship(
        "PersonalityInsight", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def spotify_connected(self) -> bool:
        return bool(self.spotify_access_token)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"
