"""Recommendation schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class RecommendationCreate(CamelModel):
    user_id: int = Field(gt=0)
    mood_entry_id: Optional[int] = None
    spotify_track_id: str = Field(min_length=1)
    track_name: str = Field(min_length=1, max_length=500)
    artist_name: str = Field(min_length=1, max_length=500)
    album_image: Optional[str] = None
    reason: Optional[str] = None
    match_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class RecommendationResponse(CamelModel):
    id: int
    user_id: int
    mood_entry_id: Optional[int] = None
    spotify_track_id: str
    track_name: str
    artist_name: str
    album_image: Optional[str] = None
    reason: Optional[str] = None
    match_score: Optional[float] = None
    created_at: datetime


class MusicRecommendationReason(CamelModel):
    """Language-model justification for recommending music in a mood."""
    reason: str
    match_score: float = Field(default=0.8, ge=0.0, le=1.0)
    mood: str
    explanation: str


class GeneratedRecommendation(RecommendationResponse):
    """Stored recommendation plus the Spotify track and the generated reasoning."""
    track: Dict[str, Any]
    recommendation: MusicRecommendationReason
