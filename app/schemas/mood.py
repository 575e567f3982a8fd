"""Mood entry schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class MoodEntryCreate(CamelModel):
    """Incoming mood entry."""
    user_id: int = Field(gt=0, description="User ID must be positive")
    mood_score: int = Field(ge=1, le=10, description="Mood score must be between 1 and 10")
    emotions: Optional[List[str]] = Field(default=None, max_length=10)
    notes: Optional[str] = Field(default=None, max_length=1000)


class MoodEntryResponse(CamelModel):
    id: int
    user_id: int
    mood_score: int
    emotions: Optional[List[str]] = None
    notes: Optional[str] = None
    created_at: datetime


class UserStats(CamelModel):
    """Dashboard summary for one user."""
    current_mood: str
    streak: str
    songs_analyzed: int
    mood_score: str
    average_mood: str
    best_day: str
    improvement: str
