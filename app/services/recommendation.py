"""Recommendation and personality insight orchestration."""

import asyncio
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from app.core.config import settings
from app.schemas import (
    GeneratedRecommendation,
    PersonalityInsightResponse,
    RecommendationResponse
)
from app.services.insight_engine import InsightEngine
from app.services.repository import MoodRepository
from app.services.spotify_service import SpotifyService, album_image, primary_artist
from app.utils.dates import as_utc, utcnow
from app.utils.exceptions import NotFoundError
from app.utils.logging import setup_logger

logger = setup_logger(__name__)

DEFAULT_MOOD = "happy"
DEFAULT_MOOD_SCORE = 7

# (target_energy, target_valence)
MOOD_TARGETS: Dict[str, Tuple[float, float]] = {
    "happy": (0.7, 0.8),
    "sad": (0.3, 0.2),
    "energetic": (0.9, 0.7),
    "calm": (0.3, 0.6),
    "peaceful": (0.3, 0.6),
}
NEUTRAL_TARGETS = (0.5, 0.5)

# Seed genre when the user has no analyzed tracks yet
MOOD_GENRES: Dict[str, str] = {
    "happy": "happy",
    "sad": "sad",
    "energetic": "dance",
    "calm": "chill",
    "peaceful": "ambient",
    "angry": "metal",
    "anxious": "acoustic",
    "excited": "party",
    "grateful": "soul",
}
DEFAULT_GENRE = "pop"


def mood_targets(mood: str) -> Tuple[float, float]:
    return MOOD_TARGETS.get(mood.lower(), NEUTRAL_TARGETS)


class RecommendationService:
    """Builds mood-matched Spotify recommendations and stores them with a generated rationale."""

    def __init__(self, repository: MoodRepository, spotify: SpotifyService, engine: InsightEngine):
        self.repository = repository
        self.spotify = spotify
        self.engine = engine

    async def generate(
        self,
        user_id: int,
        mood: Optional[str] = None,
        limit: int = 10
    ) -> List[GeneratedRecommendation]:
        if self.repository.get_user(user_id) is None:
            raise NotFoundError("User not found")

        recent_entries = self.repository.get_mood_entries(user_id, 5)
        latest = recent_entries[0] if recent_entries else None
        current_mood = (mood or "").strip() or (latest.primary_emotion if latest else None) or DEFAULT_MOOD
        mood_score = latest.mood_score if latest else DEFAULT_MOOD_SCORE

        history = self.repository.get_music_analysis(user_id, 20)
        target_energy, target_valence = mood_targets(current_mood)

        seed_tracks: List[str] = []
        for analysis in history:
            if analysis.spotify_track_id not in seed_tracks:
                seed_tracks.append(analysis.spotify_track_id)
            if len(seed_tracks) == 3:
                break
        seed_genres = [] if seed_tracks else [MOOD_GENRES.get(current_mood.lower(), DEFAULT_GENRE)]

        tracks = await self.spotify.get_recommendations(
            seed_tracks,
            target_energy,
            target_valence,
            limit=limit,
            seed_genres=seed_genres,
            fallback_query=f"{current_mood} mood"
        )
        tracks = [track for track in tracks if track and track.get("id")]
        logger.info(f"Got {len(tracks)} candidate tracks for user {user_id} ({current_mood})")

        preferences: Dict[str, Any] = {
            "recentTracks": [
                {
                    "trackName": analysis.track_name,
                    "artistName": analysis.artist_name,
                    "predictedMood": analysis.predicted_mood
                }
                for analysis in history[:5]
            ]
        }
        reasons = await asyncio.gather(*(
            self.engine.generate_music_recommendation(current_mood, mood_score, preferences)
            for _ in tracks
        ))

        results = []
        for track, reason in zip(tracks, reasons):
            stored = self.repository.create_recommendation({
                "user_id": user_id,
                "mood_entry_id": latest.id if latest else None,
                "spotify_track_id": track["id"],
                "track_name": track.get("name") or "Unknown Track",
                "artist_name": primary_artist(track),
                "album_image": album_image(track),
                "reason": reason.reason,
                "match_score": reason.match_score
            })
            results.append(GeneratedRecommendation(
                **RecommendationResponse.model_validate(stored).model_dump(),
                track=track,
                recommendation=reason
            ))
        return results


class PersonalityService:
    """Serves the latest personality insight, regenerating it once it goes stale."""

    def __init__(
        self,
        repository: MoodRepository,
        engine: InsightEngine,
        refresh_days: Optional[int] = None
    ):
        self.repository = repository
        self.engine = engine
        self.refresh_days = refresh_days or settings.INSIGHT_REFRESH_DAYS

    @staticmethod
    def placeholder() -> PersonalityInsightResponse:
        return PersonalityInsightResponse(
            music_dna="Start tracking your music and mood to get personalized insights!",
            energy_level=0.5,
            positivity_level=0.5,
            ai_suggestion="Log your mood and analyze some songs to get started.",
            traits=[]
        )

    async def get_insight(self, user_id: int) -> PersonalityInsightResponse:
        latest = self.repository.get_latest_personality_insight(user_id)
        cutoff = utcnow() - timedelta(days=self.refresh_days)
        if latest is not None and as_utc(latest.generated_at) > cutoff:
            return PersonalityInsightResponse.model_validate(latest)

        music_data = self.repository.get_music_analysis(user_id, 50)
        mood_history = self.repository.get_mood_entries(user_id, 30)
        if not music_data or not mood_history:
            return self.placeholder()

        profile = await self.engine.generate_personality_profile(music_data, mood_history)
        insight = self.repository.create_personality_insight({
            "user_id": user_id,
            "music_dna": profile.music_dna,
            "energy_level": profile.energy_level,
            "positivity_level": profile.positivity_level,
            "ai_suggestion": profile.ai_suggestion
        })
        logger.info(f"Generated personality insight {insight.id} for user {user_id}")

        response = PersonalityInsightResponse.model_validate(insight)
        return response.model_copy(update={"traits": profile.traits})
