from sqlalchemy import Column, DateTime, Integer, Text, ForeignKey, CheckConstraint, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.utils.dates import utcnow

# JSONB on Postgres, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class MoodEntry(Base):
    """A self-reported mood score with emotion tags. Never updated after insert."""

    __tablename__ = "mood_entries"
    __table_args__ = (
        CheckConstraint("mood_score >= 1 AND mood_score <= 10", name="mood_score_range"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mood_score = Column(Integer, nullable=False)  # 1-10 scale
    emotions = Column(JSONType)  # ordered list of emotion tags
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    user = relationship("User", back_populates="mood_entries")
    recommendations = relationship("Recommendation", back_populates="mood_entry", passive_deletes=True)

    @property
    def primary_emotion(self):
        return self.emotions[0] if self.emotions else None

    def __repr__(self):
        return f"<MoodEntry(user_id={self.user_id}, mood_score={self.mood_score}, created_at={self.created_at})>"
