"""Spotify OAuth and account endpoints."""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse

from app.api.deps import get_repository, get_spotify_service
from app.schemas import SpotifyStatus
from app.services.auth_service import (
    build_auth_state,
    get_connection_status,
    get_valid_access_token,
    process_spotify_callback
)
from app.services.repository import MoodRepository
from app.services.spotify_service import SpotifyService
from app.utils.exceptions import MoodScaleError, SpotifyNotConnectedError
from app.utils.logging import setup_logger

logger = setup_logger(__name__)
router = APIRouter()

# Mounted at the application root, outside the /api prefix
callback_router = APIRouter()


@router.get("/spotify/auth-url")
async def get_auth_url(
    user_id: Optional[int] = Query(None, alias="userId"),
    spotify: SpotifyService = Depends(get_spotify_service)
) -> Dict[str, str]:
    try:
        return {"authUrl": spotify.get_auth_url(build_auth_state(user_id))}
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error generating Spotify auth URL: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate auth URL")


@router.get("/spotify/status/{user_id}", response_model=SpotifyStatus)
async def get_spotify_status(
    user_id: int,
    repository: MoodRepository = Depends(get_repository)
):
    try:
        return get_connection_status(repository.get_user(user_id))
    except Exception as e:
        logger.error(f"Error getting Spotify status for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to get Spotify status")


@router.get("/spotify/playlists/{user_id}")
async def get_playlists(
    user_id: int,
    repository: MoodRepository = Depends(get_repository),
    spotify: SpotifyService = Depends(get_spotify_service)
) -> List[Dict[str, Any]]:
    token = await get_valid_access_token(repository.get_user(user_id), repository, spotify)
    if not token:
        raise SpotifyNotConnectedError()

    try:
        return await spotify.get_user_playlists(token)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error fetching playlists for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch playlists")


@callback_router.get("/callback")
async def spotify_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    repository: MoodRepository = Depends(get_repository),
    spotify: SpotifyService = Depends(get_spotify_service)
):
    """Spotify redirects here after the user grants (or denies) access."""
    url = await process_spotify_callback(code, state, error, repository, spotify)
    return RedirectResponse(url=url, status_code=302)
