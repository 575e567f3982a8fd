"""Models package initialization."""

from app.database import Base
from app.models.user import User
from app.models.mood import MoodEntry
from app.models.music import MusicAnalysis
from app.models.recommendation import Recommendation
from app.models.insight import PersonalityInsight

# Ensure all models are registered with Base
__all__ = [
    'Base',
    'User',
    'MoodEntry',
    'MusicAnalysis',
    'Recommendation',
    'PersonalityInsight'
]

# Register models with Base
Base.registry.configure()
