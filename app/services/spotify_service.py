"""Service for interacting with the Spotify Web API."""
import asyncio
from functools import partial
from typing import Any, Dict, List, Optional

import spotipy
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOAuth

from app.core.config import settings
from app.utils.exceptions import IntegrationError
from app.utils.logging import setup_logger, mask_secret

logger = setup_logger(__name__)

MAX_SEARCH_LIMIT = 50
MAX_SEEDS = 5


def primary_artist(track: Dict[str, Any]) -> str:
    artists = track.get("artists") or []
    if artists and artists[0].get("name"):
        return artists[0]["name"]
    return "Unknown Artist"


def album_image(track: Dict[str, Any]) -> Optional[str]:
    images = (track.get("album") or {}).get("images") or []
    return images[0].get("url") if images else None


class SpotifyService:
    """Wraps spotipy: app-level calls use client credentials, user calls use the user's token."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        timeout: Optional[int] = None
    ):
        self.client_id = client_id if client_id is not None else settings.SPOTIFY_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else settings.SPOTIFY_CLIENT_SECRET
        self.redirect_uri = redirect_uri or settings.SPOTIFY_REDIRECT_URI
        self.timeout = timeout or settings.SPOTIFY_REQUEST_TIMEOUT
        self._app_client: Optional[spotipy.Spotify] = None
        self.scopes = [
            'user-read-private',
            'user-read-email',
            'user-top-read',
            'user-read-recently-played',
            'playlist-read-private'
        ]

    async def _run_sync(self, func, *args, **kwargs):
        """Run a blocking spotipy call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    def _require_credentials(self) -> None:
        if not self.client_id or not self.client_secret:
            raise IntegrationError("Spotify credentials are not configured")

    def _oauth(self) -> SpotifyOAuth:
        self._require_credentials()
        return SpotifyOAuth(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.redirect_uri,
            scope=' '.join(self.scopes),
            cache_handler=MemoryCacheHandler(),
            open_browser=False,
            requests_timeout=self.timeout
        )

    def _app(self) -> spotipy.Spotify:
        """Client-credentials client; spotipy refreshes the app token itself."""
        if self._app_client is None:
            self._require_credentials()
            self._app_client = spotipy.Spotify(
                auth_manager=SpotifyClientCredentials(
                    client_id=self.client_id,
                    client_secret=self.client_secret,
                    requests_timeout=self.timeout
                ),
                requests_timeout=self.timeout
            )
        return self._app_client

    def _user(self, access_token: str) -> spotipy.Spotify:
        return spotipy.Spotify(auth=access_token, requests_timeout=self.timeout)

    # OAuth

    def get_auth_url(self, state: str) -> str:
        return self._oauth().get_authorize_url(state=state)

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code for access and refresh tokens."""
        oauth = self._oauth()
        token_info = await self._run_sync(oauth.get_access_token, code, as_dict=True, check_cache=False)
        logger.info(
            f"Exchanged Spotify authorization code, access token {mask_secret(token_info.get('access_token'))}"
        )
        return token_info

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        oauth = self._oauth()
        return await self._run_sync(oauth.refresh_access_token, refresh_token)

    async def get_user_profile(self, access_token: str) -> Dict[str, Any]:
        return await self._run_sync(self._user(access_token).current_user)

    async def get_user_playlists(self, access_token: str, limit: int = 20) -> List[Dict[str, Any]]:
        result = await self._run_sync(
            self._user(access_token).current_user_playlists,
            limit=max(1, min(limit, MAX_SEARCH_LIMIT))
        )
        return result.get("items", []) if result else []

    # Catalog

    async def search_tracks(self, query: str, limit: int = 20) -> List[Dict[str, Any]]:
        result = await self._run_sync(
            self._app().search,
            q=query,
            type="track",
            limit=max(1, min(limit, MAX_SEARCH_LIMIT))
        )
        return result.get("tracks", {}).get("items", []) if result else []

    async def search_tracks_with_user_token(
        self,
        query: str,
        access_token: str,
        limit: int = 20
    ) -> List[Dict[str, Any]]:
        """Search as the user; an expired or rejected token falls back to app search."""
        try:
            result = await self._run_sync(
                self._user(access_token).search,
                q=query,
                type="track",
                limit=max(1, min(limit, MAX_SEARCH_LIMIT))
            )
            return result.get("tracks", {}).get("items", []) if result else []
        except Exception as e:
            logger.warning(f"User token search failed, using app search: {str(e)}")
            return await self.search_tracks(query, limit)

    async def get_track(self, track_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._run_sync(self._app().track, track_id)
        except spotipy.SpotifyException as e:
            if e.http_status in (400, 404):
                logger.info(f"Spotify track {track_id} not found")
                return None
            raise

    async def get_audio_features(self, track_id: str) -> Optional[Dict[str, Any]]:
        """Audio features for a track, or None when Spotify has none."""
        try:
            features = await self._run_sync(self._app().audio_features, [track_id])
        except spotipy.SpotifyException as e:
            if e.http_status in (400, 404):
                return None
            raise
        if not features or features[0] is None:
            return None
        return features[0]

    async def get_recommendations(
        self,
        seed_tracks: List[str],
        target_energy: float,
        target_valence: float,
        limit: int = 10,
        seed_genres: Optional[List[str]] = None,
        fallback_query: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Recommended tracks near the target energy and valence.

        Spotify accepts at most five seeds in total. When the recommendations
        call fails the fallback query is run as a keyword search instead.
        """
        seed_tracks = list(seed_tracks or [])[:MAX_SEEDS]
        seed_genres = list(seed_genres or [])[:MAX_SEEDS - len(seed_tracks)]
        limit = max(1, min(limit, 100))

        try:
            result = await self._run_sync(
                self._app().recommendations,
                seed_tracks=seed_tracks or None,
                seed_genres=seed_genres or None,
                limit=limit,
                target_energy=target_energy,
                target_valence=target_valence
            )
            return result.get("tracks", []) if result else []
        except IntegrationError:
            raise
        except Exception as e:
            logger.warning(f"Spotify recommendations failed: {str(e)}")
            if not fallback_query:
                return []
            return await self.search_tracks(fallback_query, limit)
