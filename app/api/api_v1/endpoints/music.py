import asyncio
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_insight_engine, get_repository, get_spotify_service
from app.schemas import AnalyzeTrackRequest, AnalyzeTrackResponse, MusicAnalysisResponse
from app.schemas.music import AUDIO_FEATURE_KEYS, MAX_NAME_LENGTH
from app.services.auth_service import get_valid_access_token
from app.services.insight_engine import InsightEngine
from app.services.repository import MoodRepository
from app.services.spotify_service import SpotifyService, album_image, primary_artist
from app.utils.exceptions import MoodScaleError, NotFoundError, ValidationError
from app.utils.logging import setup_logger

logger = setup_logger(__name__)
router = APIRouter()


@router.get("/music/search")
async def search_music(
    q: Optional[str] = Query(None),
    limit: int = Query(20),
    user_id: Optional[int] = Query(None, alias="userId"),
    repository: MoodRepository = Depends(get_repository),
    spotify: SpotifyService = Depends(get_spotify_service)
) -> List[Dict[str, Any]]:
    """Search tracks, as the user when they have connected Spotify."""
    if not q:
        raise ValidationError("Query parameter is required")

    try:
        token = None
        if user_id:
            token = await get_valid_access_token(repository.get_user(user_id), repository, spotify)
        if token:
            return await spotify.search_tracks_with_user_token(q, token, limit)
        return await spotify.search_tracks(q, limit)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error searching tracks for '{q}': {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to search tracks")


@router.post("/music/analyze", response_model=AnalyzeTrackResponse)
async def analyze_track(
    request: AnalyzeTrackRequest,
    repository: MoodRepository = Depends(get_repository),
    spotify: SpotifyService = Depends(get_spotify_service),
    engine: InsightEngine = Depends(get_insight_engine)
):
    """
    Classify a track's mood from its audio features and store the result.

    Returns:
        The stored analysis and the full mood analysis
    """
    if not request.track_id or not request.user_id:
        raise ValidationError("Track ID and user ID are required")

    try:
        track, features = await asyncio.gather(
            spotify.get_track(request.track_id),
            spotify.get_audio_features(request.track_id)
        )
        if not track or not features:
            raise NotFoundError("Track not found or audio features unavailable")

        track_name = (track.get("name") or "Unknown Track")[:MAX_NAME_LENGTH]
        artist_name = primary_artist(track)[:MAX_NAME_LENGTH]
        mood_analysis = await engine.analyze_mood_from_music(features, track_name, artist_name)

        analysis = repository.create_music_analysis({
            "user_id": request.user_id,
            "spotify_track_id": request.track_id,
            "track_name": track_name,
            "artist_name": artist_name,
            "album_image": album_image(track),
            "audio_features": {key: features.get(key) for key in AUDIO_FEATURE_KEYS},
            "predicted_mood": mood_analysis.predicted_mood[:50],
            "mood_confidence": mood_analysis.confidence
        })
        logger.info(f"Analyzed track {request.track_id} for user {request.user_id}: {mood_analysis.predicted_mood}")

        return AnalyzeTrackResponse(
            analysis=MusicAnalysisResponse.model_validate(analysis),
            mood_analysis=mood_analysis
        )
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error analyzing track {request.track_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to analyze track")


@router.get("/music/analysis/{user_id}", response_model=List[MusicAnalysisResponse])
async def get_music_analysis(
    user_id: int,
    limit: int = Query(50),
    repository: MoodRepository = Depends(get_repository)
):
    try:
        return repository.get_music_analysis(user_id, limit)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error fetching music analysis for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch music analysis")
