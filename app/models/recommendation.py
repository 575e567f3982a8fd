from sqlalchemy import Column, String, DateTime, Integer, Float, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.utils.dates import utcnow


class Recommendation(Base):
    """A recommended track with its AI-generated reason. Pruned after the retention period."""

    __tablename__ = "recommendations"
    __table_args__ = (
        CheckConstraint(
            "match_score IS NULL OR (match_score >= 0 AND match_score <= 1)",
            name="match_score_range"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mood_entry_id = Column(Integer, ForeignKey("mood_entries.id", ondelete="SET NULL"), nullable=True)
    spotify_track_id = Column(String(255), nullable=False)
    track_name = Column(String(500), nullable=False)
    artist_name = Column(String(500), nullable=False)
    album_image = Column(Text)
    reason = Column(Text)
    match_score = Column(Float)  # 0-1 confidence score
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    user = relationship("User", back_populates="recommendations")
    mood_entry = relationship("MoodEntry", back_populates="recommendations")

    def __repr__(self):
        return f"<Recommendation(user_id={self.user_id}, track={self.spotify_track_id}, match_score={self.match_score})>"
