"""
Tests for the language-model insight engine; the OpenAI client is always mocked.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.insight_engine import InsightEngine

FEATURES = {"energy": 0.8, "valence": 0.9, "tempo": 120}


def completion(content):
    """Shape of a chat completion response"""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def make_engine(content=None, error=None):
    client = MagicMock()
    if error is not None:
        client.chat.completions.create = AsyncMock(side_effect=error)
    else:
        client.chat.completions.create = AsyncMock(return_value=completion(content))
    return InsightEngine(client=client, model="gpt-4o"), client


def assert_unit_interval(*values):
    for value in values:
        assert 0.0 <= value <= 1.0


@pytest.mark.asyncio
async def test_analyze_mood_parses_response():
    engine, client = make_engine(json.dumps({
        "predictedMood": "happy",
        "confidence": 0.92,
        "emotions": ["joyful", "uplifted"],
        "energyLevel": 0.8,
        "positivityLevel": 0.9,
        "recommendation": "Morning runs"
    }))

    result = await engine.analyze_mood_from_music(FEATURES, "Song", "Artist")

    assert result.predicted_mood == "happy"
    assert result.confidence == 0.92
    assert result.emotions == ["joyful", "uplifted"]
    assert result.recommendation == "Morning runs"

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert "Song" in kwargs["messages"][1]["content"]


@pytest.mark.asyncio
async def test_analyze_mood_clamps_out_of_range_numbers():
    engine, _ = make_engine(json.dumps({
        "predictedMood": "energetic",
        "confidence": 1.4,
        "energyLevel": -0.2,
        "positivityLevel": "very"
    }))

    result = await engine.analyze_mood_from_music(FEATURES, "Song", "Artist")

    assert result.confidence == 1.0
    assert result.energy_level == 0.0
    assert result.positivity_level == 0.5
    assert result.recommendation == "Great for general listening"
    assert_unit_interval(result.confidence, result.energy_level, result.positivity_level)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["not json", "[1, 2, 3]", '"happy"'])
async def test_analyze_mood_malformed_response_is_neutral(content):
    engine, _ = make_engine(content)

    result = await engine.analyze_mood_from_music(FEATURES, "Song", "Artist")

    assert result.predicted_mood == "neutral"
    assert result.emotions == ["neutral"]
    assert result.recommendation == "Perfect for any time"
    assert (result.confidence, result.energy_level, result.positivity_level) == (0.5, 0.5, 0.5)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", None])
async def test_analyze_mood_empty_response_uses_defaults(content):
    engine, _ = make_engine(content)

    result = await engine.analyze_mood_from_music(FEATURES, "Song", "Artist")

    assert result.predicted_mood == "neutral"
    assert result.emotions == []
    assert (result.confidence, result.energy_level, result.positivity_level) == (0.5, 0.5, 0.5)


@pytest.mark.asyncio
async def test_analyze_mood_transport_error_is_neutral():
    engine, _ = make_engine(error=ConnectionError("boom"))

    result = await engine.analyze_mood_from_music(FEATURES, "Song", "Artist")

    assert result.predicted_mood == "neutral"
    assert result.emotions == ["neutral"]
    assert (result.confidence, result.energy_level, result.positivity_level) == (0.5, 0.5, 0.5)


@pytest.mark.asyncio
async def test_no_api_key_skips_network():
    engine = InsightEngine(api_key="")
    assert engine.client is None

    mood = await engine.analyze_mood_from_music(FEATURES, "Song", "Artist")
    profile = await engine.generate_personality_profile([], [])
    reason = await engine.generate_music_recommendation("calm", 6, {})

    assert mood.predicted_mood == "neutral"
    assert profile.traits == ["music-loving", "emotionally aware"]
    assert reason.mood == "calm"
    assert reason.match_score == 0.8


@pytest.mark.asyncio
async def test_personality_profile_defaults_for_missing_fields():
    engine, client = make_engine(json.dumps({"energyLevel": 3}))
    music = [SimpleNamespace(track_name="Song", artist_name="Artist", audio_features={"energy": 0.4})]
    moods = [{"createdAt": "2024-05-01", "moodScore": 6, "emotions": ["calm"]}]

    profile = await engine.generate_personality_profile(music, moods)

    assert profile.energy_level == 1.0
    assert profile.positivity_level == 0.5
    assert profile.traits == ["curious", "open-minded", "emotionally aware"]
    assert profile.music_dna.startswith("You have an eclectic taste")
    prompt = client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
    assert "Song by Artist (Energy: 0.4, Valence: N/A)" in prompt
    assert "Mood score 6/10, Emotions: calm" in prompt


@pytest.mark.asyncio
async def test_personality_profile_failure_fallback():
    engine, _ = make_engine(error=RuntimeError("rate limited"))

    profile = await engine.generate_personality_profile([], [])

    assert profile.music_dna.startswith("You have a unique relationship with music")
    assert profile.ai_suggestion == "Continue exploring music that resonates with your emotions."
    assert (profile.energy_level, profile.positivity_level) == (0.5, 0.5)


@pytest.mark.asyncio
async def test_music_recommendation_clamps_match_score():
    engine, _ = make_engine(json.dumps({"reason": "Lifts you up", "matchScore": 7, "mood": "happy"}))

    reason = await engine.generate_music_recommendation("sad", 3, {"recentTracks": []})

    assert reason.reason == "Lifts you up"
    assert reason.match_score == 1.0
    assert reason.mood == "happy"
    assert reason.explanation


@pytest.mark.asyncio
async def test_music_recommendation_failure_fallback():
    engine, _ = make_engine("{oops")

    reason = await engine.generate_music_recommendation("sad", 3, {})

    assert reason.reason == "Perfect for your current mood"
    assert reason.match_score == 0.8
    assert reason.mood == "sad"
