"""Request-scoped dependencies shared by the API routers."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database import get_db
from app.services.insight_engine import InsightEngine
from app.services.repository import MoodRepository
from app.services.spotify_service import SpotifyService
from app.utils.rate_limiter import FixedWindowRateLimiter


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.rate_limiter


def get_repository(
    db: Session = Depends(get_db),
    rate_limiter: FixedWindowRateLimiter = Depends(get_rate_limiter)
) -> MoodRepository:
    return MoodRepository(db, rate_limiter, settings)


def get_spotify_service(request: Request) -> SpotifyService:
    """One SpotifyService per application, so the app token is reused across requests."""
    service = getattr(request.app.state, "spotify_service", None)
    if service is None:
        service = SpotifyService()
        request.app.state.spotify_service = service
    return service


def get_insight_engine(request: Request) -> InsightEngine:
    engine = getattr(request.app.state, "insight_engine", None)
    if engine is None:
        engine = InsightEngine()
        request.app.state.insight_engine = engine
    return engine
