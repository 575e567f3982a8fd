from sqlalchemy import Column, DateTime, Integer, Float, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.utils.dates import utcnow


class PersonalityInsight(Base):
    """Model for storing a user's generated music personality."""

    __tablename__ = "personality_insights"
    __table_args__ = (
        CheckConstraint(
            "energy_level IS NULL OR (energy_level >= 0 AND energy_level <= 1)",
            name="energy_level_range"
        ),
        CheckConstraint(
            "positivity_level IS NULL OR (positivity_level >= 0 AND positivity_level <= 1)",
            name="positivity_level_range"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    music_dna = Column(Text)
    energy_level = Column(Float)
    positivity_level = Column(Float)
    ai_suggestion = Column(Text)
    generated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    user = relationship("User", back_populates="personality_insights")

    def __repr__(self):
        return f"<PersonalityInsight(user_id={self.user_id}, generated_at={self.generated_at})>"
