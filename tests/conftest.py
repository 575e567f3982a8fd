"""Test configuration and fixtures."""

import os

# Settings are read at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENCRYPTION_KEY"] = "MDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDA="
os.environ["OPENAI_API_KEY"] = ""
os.environ["SPOTIFY_CLIENT_ID"] = "test_client_id"
os.environ["SPOTIFY_CLIENT_SECRET"] = "test_client_secret"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["MONITORING_ENABLED"] = "false"
os.environ["BACKUP_ENABLED"] = "false"

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_insight_engine, get_spotify_service
from app.core.config import settings
from app.database import Base, SessionLocal, engine, init_db
from app.main import app
from app.services.insight_engine import InsightEngine
from app.services.repository import MoodRepository
from app.services.spotify_service import SpotifyService
from app.utils.rate_limiter import FixedWindowRateLimiter


def make_track(track_id="track123", name="Test Song", artist="Test Artist"):
    """Spotify track payload as returned by the Web API."""
    return {
        "id": track_id,
        "name": name,
        "artists": [{"name": artist}],
        "album": {"name": "Test Album", "images": [{"url": "https://i.scdn.co/image/test"}]},
        "preview_url": None
    }


AUDIO_FEATURES = {
    "energy": 0.8,
    "valence": 0.9,
    "danceability": 0.7,
    "acousticness": 0.1,
    "tempo": 120.0,
    "speechiness": 0.05,
    "instrumentalness": 0.0,
    "liveness": 0.2,
    "id": "track123"
}


@pytest.fixture
def database():
    """Fresh schema in the shared in-memory database."""
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(database):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def rate_limiter():
    return FixedWindowRateLimiter()


@pytest.fixture
def repository(db_session, rate_limiter):
    return MoodRepository(db_session, rate_limiter, settings)


@pytest.fixture
def test_user(repository):
    return repository.create_user({"username": "test_user", "email": "test@example.com"})


@pytest.fixture
def mock_spotify():
    """SpotifyService double; async methods are AsyncMocks."""
    spotify = MagicMock(spec=SpotifyService)
    spotify.search_tracks.return_value = [make_track()]
    spotify.search_tracks_with_user_token.return_value = [make_track("user_track")]
    spotify.get_track.return_value = make_track()
    spotify.get_audio_features.return_value = dict(AUDIO_FEATURES)
    spotify.get_recommendations.return_value = [make_track("rec1"), make_track("rec2", "Other Song")]
    spotify.get_user_playlists.return_value = [{"id": "pl1", "name": "Chill"}]
    spotify.get_auth_url.return_value = "https://accounts.spotify.com/authorize?state=x"
    return spotify


@pytest.fixture
def insight_engine():
    """Engine without an API key: every call returns its default result."""
    return InsightEngine(api_key="")


@pytest.fixture
def client(database, mock_spotify, insight_engine):
    app.state.rate_limiter.reset()
    app.dependency_overrides[get_spotify_service] = lambda: mock_spotify
    app.dependency_overrides[get_insight_engine] = lambda: insight_engine
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.rate_limiter.reset()
