"""
Tests for recommendation, personality and Spotify auth services.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.config import settings
from app.services.auth_service import (
    build_auth_state,
    get_connection_status,
    get_valid_access_token,
    parse_auth_state,
    process_spotify_callback
)
from app.services.recommendation import PersonalityService, RecommendationService, mood_targets
from app.schemas import MusicRecommendationReason, PersonalityProfile
from app.utils.dates import utcnow
from app.utils.exceptions import NotFoundError


def add_analysis(repository, user_id, track_id="seed1"):
    return repository.create_music_analysis({
        "user_id": user_id,
        "spotify_track_id": track_id,
        "track_name": f"Song {track_id}",
        "artist_name": "Artist",
        "predicted_mood": "happy",
        "mood_confidence": 0.9
    })


@pytest.mark.parametrize("mood, expected", [
    ("happy", (0.7, 0.8)),
    ("SAD", (0.3, 0.2)),
    ("energetic", (0.9, 0.7)),
    ("calm", (0.3, 0.6)),
    ("peaceful", (0.3, 0.6)),
    ("nostalgic", (0.5, 0.5)),
])
def test_mood_targets(mood, expected):
    assert mood_targets(mood) == expected


@pytest.mark.asyncio
async def test_recommendations_seed_from_history(repository, test_user, mock_spotify, insight_engine):
    entry = repository.create_mood_entry({"user_id": test_user.id, "mood_score": 3, "emotions": ["sad"]})
    for track_id in ["a", "b", "c", "d"]:
        add_analysis(repository, test_user.id, track_id)

    service = RecommendationService(repository, mock_spotify, insight_engine)
    results = await service.generate(test_user.id, limit=5)

    args, kwargs = mock_spotify.get_recommendations.call_args
    seeds, energy, valence = args
    assert len(seeds) == 3
    assert set(seeds) <= {"a", "b", "c", "d"}
    assert (energy, valence) == (0.3, 0.2)
    assert kwargs["seed_genres"] == []
    assert kwargs["fallback_query"] == "sad mood"

    assert len(results) == 2
    assert results[0].mood_entry_id == entry.id
    assert results[0].recommendation.mood == "sad"
    assert 0.0 <= results[0].match_score <= 1.0
    assert len(repository.get_recommendations(test_user.id)) == 2


@pytest.mark.asyncio
async def test_recommendations_without_history_use_genre_seed(repository, test_user, mock_spotify, insight_engine):
    service = RecommendationService(repository, mock_spotify, insight_engine)
    results = await service.generate(test_user.id, mood="energetic")

    args, kwargs = mock_spotify.get_recommendations.call_args
    assert args[0] == []
    assert kwargs["seed_genres"] == ["dance"]
    assert results[0].mood_entry_id is None
    assert results[0].recommendation.mood == "energetic"


@pytest.mark.asyncio
async def test_recommendations_default_mood_is_happy(repository, test_user, mock_spotify):
    engine = MagicMock()
    engine.generate_music_recommendation = AsyncMock(return_value=MusicRecommendationReason(
        reason="Upbeat", match_score=0.9, mood="happy", explanation="Fits"
    ))
    service = RecommendationService(repository, mock_spotify, engine)

    await service.generate(test_user.id)

    engine.generate_music_recommendation.assert_awaited_with("happy", 7, {"recentTracks": []})
    assert engine.generate_music_recommendation.await_count == 2


@pytest.mark.asyncio
async def test_recommendations_unknown_user(repository, mock_spotify, insight_engine):
    with pytest.raises(NotFoundError):
        await RecommendationService(repository, mock_spotify, insight_engine).generate(999)


@pytest.mark.asyncio
async def test_personality_placeholder_without_data(repository, test_user, insight_engine):
    insight = await PersonalityService(repository, insight_engine).get_insight(test_user.id)

    assert insight.id is None
    assert insight.music_dna.startswith("Start tracking")
    assert insight.traits == []


@pytest.mark.asyncio
async def test_personality_generates_and_reuses(repository, db_session, test_user):
    repository.create_mood_entry({"user_id": test_user.id, "mood_score": 8, "emotions": ["happy"]})
    add_analysis(repository, test_user.id)
    engine = MagicMock()
    engine.generate_personality_profile = AsyncMock(return_value=PersonalityProfile(
        music_dna="Bright", energy_level=0.7, positivity_level=0.8,
        ai_suggestion="Keep dancing", traits=["upbeat"]
    ))
    service = PersonalityService(repository, engine)

    generated = await service.get_insight(test_user.id)
    assert generated.id is not None
    assert generated.music_dna == "Bright"
    assert generated.traits == ["upbeat"]

    reused = await service.get_insight(test_user.id)
    assert reused.id == generated.id
    assert engine.generate_personality_profile.await_count == 1

    stored = repository.get_personality_insight_by_id(generated.id)
    stored.generated_at = utcnow() - timedelta(days=8)
    db_session.commit()

    regenerated = await service.get_insight(test_user.id)
    assert regenerated.id != generated.id
    assert engine.generate_personality_profile.await_count == 2


def test_auth_state_round_trip():
    assert build_auth_state(42) == f"{settings.SPOTIFY_AUTH_STATE}:42"
    assert parse_auth_state(build_auth_state(42)) == 42
    assert parse_auth_state(settings.SPOTIFY_AUTH_STATE) == settings.DEFAULT_USER_ID


@pytest.mark.parametrize("state", [None, "", "other-app", "moodscale-auth:abc", "moodscale-auth:0", "evil:1"])
def test_invalid_auth_state(state):
    assert parse_auth_state(state) is None


@pytest.mark.asyncio
async def test_callback_success_stores_tokens(repository, db_session, test_user, mock_spotify):
    mock_spotify.exchange_code.return_value = {
        "access_token": "access", "refresh_token": "refresh", "expires_in": 3600
    }
    mock_spotify.get_user_profile.return_value = {"id": "spotify_user"}

    url = await process_spotify_callback("code", build_auth_state(test_user.id), None, repository, mock_spotify)

    assert url == "/?spotify=connected"
    db_session.expire_all()
    user = repository.get_user(test_user.id)
    assert user.spotify_id == "spotify_user"
    assert user.spotify_access_token == "access"
    assert user.spotify_refresh_token == "refresh"
    assert user.spotify_token_expires_at is not None


@pytest.mark.asyncio
async def test_callback_error_reasons(repository, test_user, mock_spotify):
    state = build_auth_state(test_user.id)
    assert await process_spotify_callback(None, state, "access_denied", repository, mock_spotify) == \
        "/?spotify=error&message=no_code"
    assert await process_spotify_callback("code", "bogus", None, repository, mock_spotify) == \
        "/?spotify=error&message=invalid_state"

    mock_spotify.exchange_code.side_effect = RuntimeError("invalid_grant")
    assert await process_spotify_callback("code", state, None, repository, mock_spotify) == \
        "/?spotify=error&message=callback_failed"


@pytest.mark.asyncio
async def test_valid_token_returned_without_refresh(repository, test_user, mock_spotify):
    user = repository.update_user(test_user.id, {
        "spotify_access_token": "live",
        "spotify_token_expires_at": utcnow() + timedelta(hours=1)
    })
    assert await get_valid_access_token(user, repository, mock_spotify) == "live"
    mock_spotify.refresh_access_token.assert_not_called()


@pytest.mark.asyncio
async def test_expired_token_is_refreshed(repository, db_session, test_user, mock_spotify):
    user = repository.update_user(test_user.id, {
        "spotify_access_token": "stale",
        "spotify_refresh_token": "refresh",
        "spotify_token_expires_at": utcnow() - timedelta(minutes=5)
    })
    mock_spotify.refresh_access_token.return_value = {"access_token": "fresh", "expires_in": 3600}

    assert await get_valid_access_token(user, repository, mock_spotify) == "fresh"
    mock_spotify.refresh_access_token.assert_awaited_once_with("refresh")

    db_session.expire_all()
    stored = repository.get_user(test_user.id)
    assert stored.spotify_access_token == "fresh"
    assert stored.spotify_refresh_token == "refresh"


@pytest.mark.asyncio
async def test_failed_refresh_returns_none(repository, test_user, mock_spotify):
    user = repository.update_user(test_user.id, {
        "spotify_access_token": "stale",
        "spotify_refresh_token": "refresh",
        "spotify_token_expires_at": utcnow() - timedelta(minutes=5)
    })
    mock_spotify.refresh_access_token.side_effect = RuntimeError("revoked")

    assert await get_valid_access_token(user, repository, mock_spotify) is None
    assert await get_valid_access_token(None, repository, mock_spotify) is None


def test_connection_status(test_user):
    assert get_connection_status(test_user) == {"connected": False, "spotifyId": None}
    assert get_connection_status(None) == {"connected": False, "spotifyId": None}
