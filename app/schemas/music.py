"""Music analysis schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.schemas.base import CamelModel

AUDIO_FEATURE_KEYS = (
    "energy",
    "valence",
    "danceability",
    "acousticness",
    "tempo",
    "speechiness",
    "instrumentalness",
    "liveness",
)

MAX_NAME_LENGTH = 200


class AudioFeatures(CamelModel):
    """Spotify audio features; everything but tempo is normalized to [0, 1]."""
    energy: float = Field(ge=0.0, le=1.0)
    valence: float = Field(ge=0.0, le=1.0)
    danceability: float = Field(ge=0.0, le=1.0)
    acousticness: float = Field(ge=0.0, le=1.0)
    tempo: float = Field(ge=0.0)
    speechiness: float = Field(ge=0.0, le=1.0)
    instrumentalness: float = Field(ge=0.0, le=1.0)
    liveness: float = Field(ge=0.0, le=1.0)

    @classmethod
    def from_spotify(cls, payload: Dict[str, Any]) -> "AudioFeatures":
        return cls(**{key: payload.get(key) for key in AUDIO_FEATURE_KEYS})


class MusicAnalysisCreate(CamelModel):
    user_id: int = Field(gt=0)
    spotify_track_id: str = Field(min_length=1, description="Spotify track ID is required")
    track_name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    artist_name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    album_image: Optional[str] = Field(default=None, pattern=r'^https?://')
    audio_features: Optional[AudioFeatures] = None
    predicted_mood: Optional[str] = Field(default=None, max_length=50)
    mood_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class MusicAnalysisResponse(CamelModel):
    id: int
    user_id: int
    spotify_track_id: str
    track_name: str
    artist_name: str
    album_image: Optional[str] = None
    audio_features: Optional[Dict[str, float]] = None
    predicted_mood: Optional[str] = None
    mood_confidence: Optional[float] = None
    created_at: datetime


class MoodAnalysis(CamelModel):
    """Language-model reading of a track's mood."""
    predicted_mood: str = "neutral"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    emotions: List[str] = Field(default_factory=list)
    energy_level: float = Field(default=0.5, ge=0.0, le=1.0)
    positivity_level: float = Field(default=0.5, ge=0.0, le=1.0)
    recommendation: str = ""


class AnalyzeTrackRequest(CamelModel):
    track_id: Optional[str] = None
    user_id: Optional[int] = None


class AnalyzeTrackResponse(CamelModel):
    analysis: MusicAnalysisResponse
    mood_analysis: MoodAnalysis
