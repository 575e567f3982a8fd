"""
Language-model mood and personality analysis.

Each call is a single JSON-mode chat completion. Model output is treated as
untrusted: numbers are clamped into [0, 1] and any failure degrades to a
neutral result instead of failing the request.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from app.core.config import settings
from app.schemas import MoodAnalysis, PersonalityProfile, MusicRecommendationReason, clamp_unit
from app.utils.logging import setup_logger

logger = setup_logger(__name__)

MOOD_SYSTEM_PROMPT = (
    "You are an expert music psychologist who analyzes the emotional impact of music. "
    "Provide detailed mood analysis based on audio features."
)
PROFILE_SYSTEM_PROMPT = (
    "You are a music psychology expert who creates personality profiles based on "
    "music preferences and mood patterns."
)
RECOMMENDATION_SYSTEM_PROMPT = (
    "You are a music therapist who provides personalized music recommendations "
    "based on current mood and preferences."
)


def fallback_mood_analysis() -> MoodAnalysis:
    return MoodAnalysis(
        predicted_mood="neutral",
        confidence=0.5,
        emotions=["neutral"],
        energy_level=0.5,
        positivity_level=0.5,
        recommendation="Perfect for any time"
    )


def fallback_personality_profile() -> PersonalityProfile:
    return PersonalityProfile(
        music_dna="You have a unique relationship with music that reflects your individual personality.",
        energy_level=0.5,
        positivity_level=0.5,
        ai_suggestion="Continue exploring music that resonates with your emotions.",
        traits=["music-loving", "emotionally aware"]
    )


def fallback_recommendation(current_mood: str) -> MusicRecommendationReason:
    return MusicRecommendationReason(
        reason="Perfect for your current mood",
        match_score=0.8,
        mood=current_mood,
        explanation="This music should complement your current emotional state"
    )


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _string_list(value: Any, default: List[str]) -> List[str]:
    if not isinstance(value, list):
        return list(default)
    items = [str(item).strip() for item in value if isinstance(item, (str, int, float))]
    return [item for item in items if item] or list(default)


def _field(source: Any, *names: str) -> Any:
    """Read the first present attribute or key out of a row or a dict."""
    for name in names:
        if isinstance(source, dict):
            if name in source:
                return source[name]
        elif hasattr(source, name):
            return getattr(source, name)
    return None


class InsightEngine:
    """Async wrapper around the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        self.model = model or settings.OPENAI_MODEL
        api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        if client is not None:
            self.client = client
        elif api_key:
            self.client = AsyncOpenAI(api_key=api_key)
        else:
            logger.warning("OPENAI_API_KEY not set, insights will use default values")
            self.client = None

    async def _complete_json(self, system: str, prompt: str) -> Dict[str, Any]:
        if self.client is None:
            raise RuntimeError("Language model client not configured")

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt}
            ],
            response_format={"type": "json_object"}
        )
        content = response.choices[0].message.content or "{}"
        result = json.loads(content)
        if not isinstance(result, dict):
            raise ValueError(f"Expected a JSON object, got {type(result).__name__}")
        return result

    async def analyze_mood_from_music(
        self,
        features: Dict[str, Any],
        track_name: str,
        artist_name: str
    ) -> MoodAnalysis:
        """Classify the mood of a track from its audio features."""
        feature_lines = "\n".join(
            f"- {label}: {features.get(key)}"
            for label, key in (
                ("Energy", "energy"),
                ("Valence (positivity)", "valence"),
                ("Danceability", "danceability"),
                ("Acousticness", "acousticness"),
                ("Tempo", "tempo"),
                ("Speechiness", "speechiness"),
                ("Instrumentalness", "instrumentalness"),
                ("Liveness", "liveness"),
            )
        )
        prompt = (
            "Analyze the mood and emotional characteristics of this music track based on its audio features:\n\n"
            f"Track: \"{track_name}\" by {artist_name}\n"
            f"Audio Features:\n{feature_lines}\n\n"
            "Please provide a mood analysis in JSON format with:\n"
            "- predictedMood: primary mood (happy, sad, energetic, calm, peaceful, angry, etc.)\n"
            "- confidence: confidence score (0-1)\n"
            "- emotions: array of 2-3 specific emotions this track evokes\n"
            "- energyLevel: normalized energy level (0-1)\n"
            "- positivityLevel: normalized positivity level (0-1)\n"
            "- recommendation: brief recommendation on when to listen to this track"
        )

        try:
            result = await self._complete_json(MOOD_SYSTEM_PROMPT, prompt)
            return MoodAnalysis(
                predicted_mood=_text(result.get("predictedMood"), "neutral"),
                confidence=clamp_unit(result.get("confidence")),
                emotions=_string_list(result.get("emotions"), []),
                energy_level=clamp_unit(result.get("energyLevel")),
                positivity_level=clamp_unit(result.get("positivityLevel")),
                recommendation=_text(result.get("recommendation"), "Great for general listening")
            )
        except Exception as e:
            logger.error(f"Error analyzing mood for '{track_name}': {str(e)}")
            return fallback_mood_analysis()

    async def generate_personality_profile(
        self,
        music_data: Sequence[Any],
        mood_history: Sequence[Any]
    ) -> PersonalityProfile:
        """Summarize listening history and mood entries into a personality profile."""
        track_lines = []
        for track in music_data:
            features = _field(track, "audio_features", "audioFeatures") or {}
            track_lines.append(
                f"- {_field(track, 'track_name', 'trackName')} by {_field(track, 'artist_name', 'artistName')} "
                f"(Energy: {features.get('energy', 'N/A')}, Valence: {features.get('valence', 'N/A')})"
            )
        mood_lines = []
        for entry in mood_history:
            emotions = _field(entry, "emotions") or []
            mood_lines.append(
                f"- {_field(entry, 'created_at', 'createdAt')}: Mood score {_field(entry, 'mood_score', 'moodScore')}/10, "
                f"Emotions: {', '.join(emotions) if emotions else 'None'}"
            )
        prompt = (
            "Based on the user's music listening history and mood patterns, generate a personality profile:\n\n"
            "Music Listening Patterns:\n" + "\n".join(track_lines) + "\n\n"
            "Recent Mood History:\n" + "\n".join(mood_lines) + "\n\n"
            "Please provide a personality analysis in JSON format with:\n"
            "- musicDNA: 2-3 sentence description of their music personality\n"
            "- energyLevel: overall energy preference (0-1)\n"
            "- positivityLevel: overall positivity level (0-1)\n"
            "- aiSuggestion: personalized suggestion for improving mood through music\n"
            "- traits: array of 3-5 personality traits based on music taste"
        )

        try:
            result = await self._complete_json(PROFILE_SYSTEM_PROMPT, prompt)
            return PersonalityProfile(
                music_dna=_text(
                    result.get("musicDNA"),
                    "You have an eclectic taste in music that reflects a curious and open-minded personality."
                ),
                energy_level=clamp_unit(result.get("energyLevel")),
                positivity_level=clamp_unit(result.get("positivityLevel")),
                ai_suggestion=_text(
                    result.get("aiSuggestion"),
                    "Try exploring new genres during different times of day to match your energy levels."
                ),
                traits=_string_list(result.get("traits"), ["curious", "open-minded", "emotionally aware"])
            )
        except Exception as e:
            logger.error(f"Error generating personality profile: {str(e)}")
            return fallback_personality_profile()

    async def generate_music_recommendation(
        self,
        current_mood: str,
        mood_score: int,
        preferences: Dict[str, Any]
    ) -> MusicRecommendationReason:
        """Explain why music in a given mood suits the user right now."""
        prompt = (
            "Generate a music recommendation explanation for a user with:\n"
            f"- Current mood: {current_mood}\n"
            f"- Mood score: {mood_score}/10\n"
            f"- Music preferences: {json.dumps(preferences, default=str)}\n\n"
            "Please provide a recommendation analysis in JSON format with:\n"
            "- reason: why this type of music would be good for their current state\n"
            "- matchScore: how well this matches their mood (0-1)\n"
            "- mood: the target mood this music should help achieve\n"
            "- explanation: detailed explanation of the recommendation"
        )

        try:
            result = await self._complete_json(RECOMMENDATION_SYSTEM_PROMPT, prompt)
            return MusicRecommendationReason(
                reason=_text(result.get("reason"), "This music matches your current emotional state"),
                match_score=clamp_unit(result.get("matchScore"), default=0.8),
                mood=_text(result.get("mood"), current_mood),
                explanation=_text(
                    result.get("explanation"),
                    "This recommendation is tailored to your current mood and preferences"
                )
            )
        except Exception as e:
            logger.error(f"Error generating music recommendation: {str(e)}")
            return fallback_recommendation(current_mood)
