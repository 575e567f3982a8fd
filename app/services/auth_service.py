"""Spotify OAuth state, callback handling and token refresh."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from app.core.config import settings
from app.models import User
from app.services.repository import MoodRepository
from app.services.spotify_service import SpotifyService
from app.utils.dates import as_utc, utcnow
from app.utils.logging import setup_logger, mask_secret

logger = setup_logger(__name__)

# Refresh slightly before Spotify rejects the token
EXPIRY_MARGIN = timedelta(seconds=60)


def build_auth_state(user_id: Optional[int] = None) -> str:
    """OAuth state naming the user the callback should attach tokens to."""
    user_id = user_id or settings.DEFAULT_USER_ID
    return f"{settings.SPOTIFY_AUTH_STATE}:{user_id}"


def parse_auth_state(state: Optional[str]) -> Optional[int]:
    """
    Recover the user id from an OAuth state value.

    The bare state prefix maps to the default user. Returns None when the
    state was not issued by this service.
    """
    if not state:
        return None
    if state == settings.SPOTIFY_AUTH_STATE:
        return settings.DEFAULT_USER_ID

    prefix, _, raw_id = state.partition(":")
    if prefix != settings.SPOTIFY_AUTH_STATE or not raw_id.isdigit():
        return None
    user_id = int(raw_id)
    return user_id if user_id > 0 else None


def _token_expiry(token_info: Dict[str, Any]) -> Optional[datetime]:
    if token_info.get("expires_at"):
        return datetime.fromtimestamp(int(token_info["expires_at"]), tz=timezone.utc)
    if token_info.get("expires_in"):
        return utcnow() + timedelta(seconds=int(token_info["expires_in"]))
    return None


def _error_redirect(reason: str) -> str:
    return f"/?spotify=error&message={reason}"


async def process_spotify_callback(
    code: Optional[str],
    state: Optional[str],
    error: Optional[str],
    repository: MoodRepository,
    spotify: SpotifyService
) -> str:
    """
    Complete the authorization-code flow and return the dashboard redirect URL.

    Args:
        code: Authorization code from Spotify
        state: OAuth state issued by build_auth_state
        error: Error reported by Spotify (user denied access, ...)

    Returns:
        "/?spotify=connected" or "/?spotify=error&message=<reason>"
    """
    if error:
        logger.warning(f"Spotify authorization returned error: {error}")
    if not code:
        return _error_redirect("no_code")

    user_id = parse_auth_state(state)
    if user_id is None:
        logger.warning("Spotify callback with invalid state")
        return _error_redirect("invalid_state")

    try:
        if repository.get_user(user_id) is None:
            logger.warning(f"Spotify callback for unknown user {user_id}")
            return _error_redirect("invalid_state")

        token_info = await spotify.exchange_code(code)
        profile = await spotify.get_user_profile(token_info["access_token"])

        repository.update_user(user_id, {
            "spotify_id": profile.get("id"),
            "spotify_access_token": token_info["access_token"],
            "spotify_refresh_token": token_info.get("refresh_token"),
            "spotify_token_expires_at": _token_expiry(token_info)
        })
        logger.info(f"Connected Spotify account {profile.get('id')} to user {user_id}")
        return "/?spotify=connected"
    except Exception as e:
        logger.error(f"Spotify callback error: {str(e)}")
        return _error_redirect("callback_failed")


async def get_valid_access_token(
    user: Optional[User],
    repository: MoodRepository,
    spotify: SpotifyService
) -> Optional[str]:
    """
    Return a usable access token for the user, refreshing it if it has expired.

    Returns None when the user never connected Spotify or the refresh fails.
    """
    if user is None or not user.spotify_access_token:
        return None

    expires_at = user.spotify_token_expires_at
    if expires_at is None or as_utc(expires_at) > utcnow() + EXPIRY_MARGIN:
        return user.spotify_access_token

    if not user.spotify_refresh_token:
        logger.info(f"Spotify token for user {user.id} expired and cannot be refreshed")
        return None

    try:
        token_info = await spotify.refresh_access_token(user.spotify_refresh_token)
    except Exception as e:
        logger.error(f"Error refreshing Spotify token for user {user.id}: {str(e)}")
        return None

    access_token = token_info.get("access_token")
    if not access_token:
        logger.error(f"Spotify token refresh for user {user.id} returned no access token")
        return None

    repository.update_user(user.id, {
        "spotify_access_token": access_token,
        "spotify_refresh_token": token_info.get("refresh_token") or user.spotify_refresh_token,
        "spotify_token_expires_at": _token_expiry(token_info)
    })
    logger.info(f"Refreshed Spotify token for user {user.id} ({mask_secret(access_token)})")
    return access_token


def get_connection_status(user: Optional[User]) -> Dict[str, Any]:
    return {
        "connected": bool(user is not None and user.spotify_access_token),
        "spotifyId": user.spotify_id if user is not None else None
    }
