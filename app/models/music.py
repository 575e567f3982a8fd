from sqlalchemy import Column, String, DateTime, Integer, Float, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.utils.dates import utcnow
from app.models.mood import JSONType


class MusicAnalysis(Base):
    """Audio features and predicted mood for a track a user analyzed."""

    __tablename__ = "music_analysis"
    __table_args__ = (
        CheckConstraint(
            "mood_confidence IS NULL OR (mood_confidence >= 0 AND mood_confidence <= 1)",
            name="mood_confidence_range"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    spotify_track_id = Column(String(255), nullable=False)
    track_name = Column(String(500), nullable=False)
    artist_name = Column(String(500), nullable=False)
    album_image = Column(Text)
    audio_features = Column(JSONType)  # Spotify audio features
    predicted_mood = Column(String(100))
    mood_confidence = Column(Float)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    user = relationship("User", back_populates="music_analyses")

    def __repr__(self):
        return f"<MusicAnalysis(user_id={self.user_id}, track={self.spotify_track_id}, mood={self.predicted_mood})>"
