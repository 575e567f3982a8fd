"""Schema exports."""

from app.schemas.base import CamelModel, clamp_unit
from app.schemas.user import UserCreate, UserUpdate, UserResponse, SpotifyStatus
from app.schemas.mood import MoodEntryCreate, MoodEntryResponse, UserStats
from app.schemas.music import (
    AudioFeatures,
    MusicAnalysisCreate,
    MusicAnalysisResponse,
    MoodAnalysis,
    AnalyzeTrackRequest,
    AnalyzeTrackResponse
)
from app.schemas.recommendation import (
    RecommendationCreate,
    RecommendationResponse,
    MusicRecommendationReason,
    GeneratedRecommendation
)
from app.schemas.insight import (
    PersonalityProfile,
    PersonalityInsightCreate,
    PersonalityInsightResponse
)

__all__ = [
    'CamelModel',
    'clamp_unit',
    'UserCreate',
    'UserUpdate',
    'UserResponse',
    'SpotifyStatus',
    'MoodEntryCreate',
    'MoodEntryResponse',
    'UserStats',
    'AudioFeatures',
    'MusicAnalysisCreate',
    'MusicAnalysisResponse',
    'MoodAnalysis',
    'AnalyzeTrackRequest',
    'AnalyzeTrackResponse',
    'RecommendationCreate',
    'RecommendationResponse',
    'MusicRecommendationReason',
    'GeneratedRecommendation',
    'PersonalityProfile',
    'PersonalityInsightCreate',
    'PersonalityInsightResponse'
]
