"""
Endpoint tests through the FastAPI TestClient.
"""

from datetime import timedelta
from unittest.mock import patch

from app.main import app
from app.utils.dates import utcnow


def test_create_and_get_user(client):
    response = client.post("/api/users", json={"username": "new_user", "email": "new@example.com"})
    assert response.status_code == 201
    body = response.json()
    assert body["username"] == "new_user"
    assert body["spotifyConnected"] is False
    assert "spotifyAccessToken" not in body

    response = client.get(f"/api/users/{body['id']}")
    assert response.status_code == 200
    assert response.json()["email"] == "new@example.com"


def test_get_unknown_user(client):
    response = client.get("/api/users/999")
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_duplicate_user(client, test_user):
    response = client.post("/api/users", json={"username": test_user.username})
    assert response.status_code == 400
    assert response.json() == {"error": "Username already exists"}


def test_create_mood_entry(client, test_user):
    response = client.post("/api/mood-entries", json={
        "userId": test_user.id,
        "moodScore": 8,
        "emotions": ["happy", "<em>excited</em>"],
        "notes": "Great day"
    })
    assert response.status_code == 200
    body = response.json()
    assert body["moodScore"] == 8
    assert body["emotions"] == ["happy", "emexcited/em"]
    assert body["userId"] == test_user.id
    assert "createdAt" in body


def test_create_mood_entry_invalid_score(client, test_user):
    response = client.post("/api/mood-entries", json={"userId": test_user.id, "moodScore": 11})
    assert response.status_code == 400
    assert "error" in response.json()


def test_create_mood_entry_unknown_user(client):
    response = client.post("/api/mood-entries", json={"userId": 999, "moodScore": 5})
    assert response.status_code == 404


def test_mood_entry_rate_limited(client, test_user):
    for _ in range(10):
        assert client.post("/api/mood-entries", json={"userId": test_user.id, "moodScore": 5}).status_code == 200

    response = client.post("/api/mood-entries", json={"userId": test_user.id, "moodScore": 5})
    assert response.status_code == 429
    assert response.json()["error"] == "Rate limit exceeded for mood entries"


def test_mood_entries_and_trends(client, repository, db_session, test_user):
    old = repository.create_mood_entry({"user_id": test_user.id, "mood_score": 3})
    repository.create_mood_entry({"user_id": test_user.id, "mood_score": 6})
    repository.create_mood_entry({"user_id": test_user.id, "mood_score": 9})
    old.created_at = utcnow() - timedelta(days=30)
    db_session.commit()

    entries = client.get(f"/api/mood-entries/{test_user.id}?limit=2").json()
    assert [e["moodScore"] for e in entries] == [9, 6]

    trends = client.get(f"/api/mood-trends/{test_user.id}?days=7").json()
    assert [e["moodScore"] for e in trends] == [6, 9]


def test_user_stats(client, repository, test_user):
    repository.create_mood_entry({"user_id": test_user.id, "mood_score": 4, "emotions": ["tired"]})
    repository.create_mood_entry({"user_id": test_user.id, "mood_score": 8, "emotions": ["happy"]})

    response = client.get(f"/api/user-stats/{test_user.id}")
    assert response.status_code == 200
    stats = response.json()
    assert stats["currentMood"] == "happy"
    assert stats["streak"] == "1 days"
    assert stats["songsAnalyzed"] == 0
    assert stats["averageMood"] == "6.0"
    assert stats["improvement"] == "+100.0%"


def test_search_requires_query(client):
    response = client.get("/api/music/search")
    assert response.status_code == 400
    assert response.json() == {"error": "Query parameter is required"}


def test_search_uses_app_token(client, mock_spotify):
    response = client.get("/api/music/search?q=lofi&limit=5")
    assert response.status_code == 200
    assert response.json()[0]["id"] == "track123"
    mock_spotify.search_tracks.assert_awaited_once_with("lofi", 5)


def test_search_uses_connected_user_token(client, repository, test_user, mock_spotify):
    repository.update_user(test_user.id, {"spotify_access_token": "user-token"})

    response = client.get(f"/api/music/search?q=lofi&userId={test_user.id}")
    assert response.json()[0]["id"] == "user_track"
    mock_spotify.search_tracks_with_user_token.assert_awaited_once_with("lofi", "user-token", 20)


def test_analyze_track(client, test_user, mock_spotify):
    response = client.post("/api/music/analyze", json={"trackId": "track123", "userId": test_user.id})
    assert response.status_code == 200
    body = response.json()
    assert body["analysis"]["trackName"] == "Test Song"
    assert body["analysis"]["artistName"] == "Test Artist"
    assert body["analysis"]["albumImage"] == "https://i.scdn.co/image/test"
    assert body["analysis"]["audioFeatures"]["tempo"] == 120.0
    assert body["moodAnalysis"]["predictedMood"] == "neutral"
    for key in ("confidence", "energyLevel", "positivityLevel"):
        assert 0.0 <= body["moodAnalysis"][key] <= 1.0

    history = client.get(f"/api/music/analysis/{test_user.id}").json()
    assert [a["spotifyTrackId"] for a in history] == ["track123"]


def test_analyze_track_missing_fields(client):
    response = client.post("/api/music/analyze", json={"trackId": "track123"})
    assert response.status_code == 400
    assert response.json() == {"error": "Track ID and user ID are required"}


def test_analyze_track_without_features(client, test_user, mock_spotify):
    mock_spotify.get_audio_features.return_value = None
    response = client.post("/api/music/analyze", json={"trackId": "track123", "userId": test_user.id})
    assert response.status_code == 404


def test_analyze_track_spotify_failure(client, test_user, mock_spotify):
    mock_spotify.get_track.side_effect = RuntimeError("timeout")
    response = client.post("/api/music/analyze", json={"trackId": "track123", "userId": test_user.id})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to analyze track"}


def test_recommendations(client, repository, test_user):
    repository.create_mood_entry({"user_id": test_user.id, "mood_score": 6, "emotions": ["calm"]})

    response = client.get(f"/api/recommendations/{test_user.id}?limit=2")
    assert response.status_code == 200
    body = response.json()
    assert len(body) == 2
    assert body[0]["track"]["id"] == "rec1"
    assert body[0]["recommendation"]["mood"] == "calm"
    assert body[0]["matchScore"] == 0.8

    history = client.get(f"/api/recommendations/{test_user.id}/history").json()
    assert len(history) == 2


def test_personality_insights_placeholder(client, test_user):
    response = client.get(f"/api/personality-insights/{test_user.id}")
    assert response.status_code == 200
    body = response.json()
    assert body["musicDNA"].startswith("Start tracking")
    assert body["energyLevel"] == 0.5
    assert body["traits"] == []


def test_spotify_auth_url(client, mock_spotify):
    response = client.get("/api/spotify/auth-url?userId=7")
    assert response.json() == {"authUrl": "https://accounts.spotify.com/authorize?state=x"}
    mock_spotify.get_auth_url.assert_called_once_with("moodscale-auth:7")


def test_spotify_status_and_playlists(client, repository, test_user, mock_spotify):
    assert client.get(f"/api/spotify/status/{test_user.id}").json() == {"connected": False, "spotifyId": None}

    response = client.get(f"/api/spotify/playlists/{test_user.id}")
    assert response.status_code == 401
    assert response.json() == {"error": "Spotify not connected"}

    repository.update_user(test_user.id, {"spotify_id": "sp1", "spotify_access_token": "user-token"})
    assert client.get(f"/api/spotify/status/{test_user.id}").json() == {"connected": True, "spotifyId": "sp1"}
    assert client.get(f"/api/spotify/playlists/{test_user.id}").json() == [{"id": "pl1", "name": "Chill"}]


def test_callback_redirects(client, test_user, mock_spotify):
    mock_spotify.exchange_code.return_value = {"access_token": "a", "refresh_token": "r", "expires_in": 3600}
    mock_spotify.get_user_profile.return_value = {"id": "sp1"}

    response = client.get(
        f"/callback?code=abc&state=moodscale-auth:{test_user.id}", follow_redirects=False
    )
    assert response.status_code == 302
    assert response.headers["location"] == "/?spotify=connected"

    response = client.get("/callback?state=moodscale-auth", follow_redirects=False)
    assert response.headers["location"] == "/?spotify=error&message=no_code"


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"


def test_database_down_returns_503(client):
    with patch("app.main.check_database_health", return_value=False):
        response = client.get("/api/mood-entries/1")
    assert response.status_code == 503
    assert response.json() == {"error": "Database unavailable"}


def test_ip_rate_limit(client):
    limiter = app.state.rate_limiter
    with patch("app.main.settings.API_RATE_LIMIT", 2):
        assert client.get("/api/health").status_code == 200
        assert client.get("/api/health").status_code == 200
        response = client.get("/api/health")
    assert response.status_code == 429
    assert response.json() == {"error": "Too many requests"}
    limiter.reset()


def test_user_stats_streak_counts_days_not_entries(client, repository, db_session, test_user):
    repository.rate_limiter = None
    now = utcnow()
    for days_ago in range(7):
        for _ in range(2):
            entry = repository.create_mood_entry({"user_id": test_user.id, "mood_score": 6})
            entry.created_at = now - timedelta(days=days_ago)
    db_session.commit()

    stats = client.get(f"/api/user-stats/{test_user.id}").json()
    assert stats["streak"] == "7 days"


def test_analyze_silent_track_with_long_name(client, test_user, mock_spotify):
    track = mock_spotify.get_track.return_value
    mock_spotify.get_track.return_value = {**track, "name": "x" * 250, "artists": [{"name": "y" * 250}]}
    mock_spotify.get_audio_features.return_value["tempo"] = 0.0

    response = client.post("/api/music/analyze", json={"trackId": "track123", "userId": test_user.id})
    assert response.status_code == 200
    analysis = response.json()["analysis"]
    assert analysis["trackName"] == "x" * 200
    assert analysis["artistName"] == "y" * 200
    assert analysis["audioFeatures"]["tempo"] == 0.0
