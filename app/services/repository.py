"""Database repository for users, mood entries, music analyses, recommendations and insights."""

from contextlib import contextmanager
from datetime import timedelta
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy import func, select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings, settings as default_settings
from app.models import User, MoodEntry, MusicAnalysis, Recommendation, PersonalityInsight
from app.schemas import (
    UserCreate,
    UserUpdate,
    MoodEntryCreate,
    MusicAnalysisCreate,
    RecommendationCreate,
    PersonalityInsightCreate
)
from app.utils.dates import utcnow
from app.utils.exceptions import (
    DatabaseError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError
)
from app.utils.logging import setup_logger
from app.utils.rate_limiter import FixedWindowRateLimiter
from app.utils.sanitize import sanitize_string, sanitize_optional, sanitize_list

logger = setup_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

MAX_MOOD_ENTRIES = 100
MAX_MUSIC_ANALYSES = 100
MAX_RECOMMENDATIONS = 50
MAX_TREND_DAYS = 365


def _validate(schema: Type[SchemaT], data: Union[SchemaT, Dict[str, Any]]) -> SchemaT:
    """Coerce input into schema, turning pydantic errors into a 400."""
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", "Invalid input")
        raise ValidationError(f"{field}: {message}" if field else message) from e


class MoodRepository:
    """SQLAlchemy-backed storage with validation, sanitization and rate limits."""

    def __init__(
        self,
        db: Session,
        rate_limiter: Optional[FixedWindowRateLimiter] = None,
        settings: Settings = default_settings
    ):
        self.db = db
        self.rate_limiter = rate_limiter
        self.settings = settings

    @contextmanager
    def _reading(self, what: str):
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {what}: {str(e)}")
            raise DatabaseError(f"Failed to fetch {what}") from e

    def _save(self, instance, what: str):
        try:
            self.db.add(instance)
            self.db.commit()
            self.db.refresh(instance)
            return instance
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating {what}: {str(e)}")
            raise DatabaseError(f"Failed to create {what}") from e

    def _check_rate_limit(self, key: str, limit: int, what: str) -> None:
        if self.rate_limiter is None:
            return
        if not self.rate_limiter.check(key, limit, self.settings.RATE_LIMIT_WINDOW_SECONDS):
            raise RateLimitExceededError(f"Rate limit exceeded for {what}")

    def _require_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # User operations

    def create_user(self, data: Union[UserCreate, Dict[str, Any]]) -> User:
        validated = _validate(UserCreate, data)
        user = User(
            username=sanitize_string(validated.username),
            email=validated.email,
            spotify_id=validated.spotify_id
        )
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError("Username already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating user: {str(e)}")
            raise DatabaseError("Failed to create user") from e
        self.db.refresh(user)
        logger.info(f"Created user {user.id}")
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        with self._reading("user"):
            return self.db.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._reading("user"):
            return self.db.execute(
                select(User).where(User.username == sanitize_string(username)).limit(1)
            ).scalar_one_or_none()

    def update_user(self, user_id: int, updates: Union[UserUpdate, Dict[str, Any]]) -> Optional[User]:
        validated = _validate(UserUpdate, updates)
        user = self.get_user(user_id)
        if user is None:
            return None

        for key, value in validated.model_dump(exclude_unset=True).items():
            if key == "username" and value is not None:
                value = sanitize_string(value)
            setattr(user, key, value)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError("Username already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating user {user_id}: {str(e)}")
            raise DatabaseError("Failed to update user") from e
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: int) -> bool:
        """Delete a user; the database cascades to every owned row."""
        user = self.get_user(user_id)
        if user is None:
            return False
        try:
            self.db.delete(user)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting user {user_id}: {str(e)}")
            raise DatabaseError("Failed to delete user") from e
        return True

    # Mood entry operations

    def create_mood_entry(self, data: Union[MoodEntryCreate, Dict[str, Any]]) -> MoodEntry:
        validated = _validate(MoodEntryCreate, data)
        self._check_rate_limit(
            f"mood_entry_{validated.user_id}",
            self.settings.MOOD_ENTRY_RATE_LIMIT,
            "mood entries"
        )
        self._require_user(validated.user_id)

        entry = MoodEntry(
            user_id=validated.user_id,
            mood_score=validated.mood_score,
            emotions=sanitize_list(validated.emotions) if validated.emotions else None,
            notes=sanitize_optional(validated.notes) or None
        )
        return self._save(entry, "mood entry")

    def get_mood_entry(self, entry_id: int) -> Optional[MoodEntry]:
        with self._reading("mood entry"):
            return self.db.get(MoodEntry, entry_id)

    def get_mood_entries(self, user_id: int, limit: int = 50) -> List[MoodEntry]:
        """Newest first, capped at 100 rows."""
        limit = max(1, min(limit, MAX_MOOD_ENTRIES))
        with self._reading("mood entries"):
            return list(self.db.execute(
                select(MoodEntry)
                .where(MoodEntry.user_id == user_id)
                .order_by(MoodEntry.created_at.desc(), MoodEntry.id.desc())
                .limit(limit)
            ).scalars())

    def get_mood_trends(self, user_id: int, days: int) -> List[MoodEntry]:
        """Entries from the last `days` days (at most a year), oldest first."""
        days = max(1, min(days, MAX_TREND_DAYS))
        cutoff = utcnow() - timedelta(days=days)
        with self._reading("mood trends"):
            return list(self.db.execute(
                select(MoodEntry)
                .where(MoodEntry.user_id == user_id, MoodEntry.created_at >= cutoff)
                .order_by(MoodEntry.created_at, MoodEntry.id)
            ).scalars())

    # Music analysis operations

    def create_music_analysis(self, data: Union[MusicAnalysisCreate, Dict[str, Any]]) -> MusicAnalysis:
        validated = _validate(MusicAnalysisCreate, data)
        self._check_rate_limit(
            f"music_analysis_{validated.user_id}",
            self.settings.MUSIC_ANALYSIS_RATE_LIMIT,
            "music analysis"
        )
        self._require_user(validated.user_id)

        analysis = MusicAnalysis(
            user_id=validated.user_id,
            spotify_track_id=validated.spotify_track_id,
            track_name=sanitize_string(validated.track_name),
            artist_name=sanitize_string(validated.artist_name),
            album_image=validated.album_image,
            audio_features=validated.audio_features.model_dump() if validated.audio_features else None,
            predicted_mood=sanitize_optional(validated.predicted_mood),
            mood_confidence=validated.mood_confidence
        )
        return self._save(analysis, "music analysis")

    def get_music_analysis_by_id(self, analysis_id: int) -> Optional[MusicAnalysis]:
        with self._reading("music analysis"):
            return self.db.get(MusicAnalysis, analysis_id)

    def get_music_analysis(self, user_id: int, limit: int = 50) -> List[MusicAnalysis]:
        limit = max(1, min(limit, MAX_MUSIC_ANALYSES))
        with self._reading("music analysis"):
            return list(self.db.execute(
                select(MusicAnalysis)
                .where(MusicAnalysis.user_id == user_id)
                .order_by(MusicAnalysis.created_at.desc(), MusicAnalysis.id.desc())
                .limit(limit)
            ).scalars())

    # Recommendation operations

    def create_recommendation(self, data: Union[RecommendationCreate, Dict[str, Any]]) -> Recommendation:
        validated = _validate(RecommendationCreate, data)
        self._require_user(validated.user_id)

        recommendation = Recommendation(
            user_id=validated.user_id,
            mood_entry_id=validated.mood_entry_id,
            spotify_track_id=validated.spotify_track_id,
            track_name=sanitize_string(validated.track_name),
            artist_name=sanitize_string(validated.artist_name),
            album_image=validated.album_image,
            reason=sanitize_optional(validated.reason),
            match_score=validated.match_score
        )
        return self._save(recommendation, "recommendation")

    def get_recommendation_by_id(self, recommendation_id: int) -> Optional[Recommendation]:
        with self._reading("recommendation"):
            return self.db.get(Recommendation, recommendation_id)

    def get_recommendations(self, user_id: int, limit: int = 20) -> List[Recommendation]:
        limit = max(1, min(limit, MAX_RECOMMENDATIONS))
        with self._reading("recommendations"):
            return list(self.db.execute(
                select(Recommendation)
                .where(Recommendation.user_id == user_id)
                .order_by(Recommendation.created_at.desc(), Recommendation.id.desc())
                .limit(limit)
            ).scalars())

    # Personality insight operations

    def create_personality_insight(
        self,
        data: Union[PersonalityInsightCreate, Dict[str, Any]]
    ) -> PersonalityInsight:
        validated = _validate(PersonalityInsightCreate, data)
        self._require_user(validated.user_id)

        insight = PersonalityInsight(
            user_id=validated.user_id,
            music_dna=validated.music_dna,
            energy_level=validated.energy_level,
            positivity_level=validated.positivity_level,
            ai_suggestion=validated.ai_suggestion
        )
        return self._save(insight, "personality insight")

    def get_personality_insight_by_id(self, insight_id: int) -> Optional[PersonalityInsight]:
        with self._reading("personality insight"):
            return self.db.get(PersonalityInsight, insight_id)

    def get_latest_personality_insight(self, user_id: int) -> Optional[PersonalityInsight]:
        with self._reading("personality insight"):
            return self.db.execute(
                select(PersonalityInsight)
                .where(PersonalityInsight.user_id == user_id)
                .order_by(PersonalityInsight.generated_at.desc(), PersonalityInsight.id.desc())
                .limit(1)
            ).scalar_one_or_none()

    # Analytics and maintenance

    def get_database_stats(self) -> Dict[str, Any]:
        """Row counts per table."""
        with self._reading("database stats"):
            return {
                "users": self.db.scalar(select(func.count()).select_from(User)),
                "moodEntries": self.db.scalar(select(func.count()).select_from(MoodEntry)),
                "musicAnalysis": self.db.scalar(select(func.count()).select_from(MusicAnalysis)),
                "recommendations": self.db.scalar(select(func.count()).select_from(Recommendation)),
                "personalityInsights": self.db.scalar(select(func.count()).select_from(PersonalityInsight)),
                "timestamp": utcnow().isoformat()
            }

    def cleanup_old_data(self, retention_days: Optional[int] = None) -> int:
        """Delete recommendations older than the retention period. Returns rows removed."""
        retention_days = retention_days or self.settings.RECOMMENDATION_RETENTION_DAYS
        cutoff = utcnow() - timedelta(days=retention_days)
        try:
            result = self.db.execute(
                delete(Recommendation)
                .where(Recommendation.created_at < cutoff)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error during database cleanup: {str(e)}")
            raise DatabaseError("Failed to clean up old data") from e

        removed = result.rowcount or 0
        logger.info(f"Database cleanup completed, removed {removed} recommendations")
        return removed
