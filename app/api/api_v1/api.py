"""API router for MoodScale endpoints."""
from fastapi import APIRouter
from app.api.api_v1.endpoints import health, mood, music, recommendations, spotify, users

api_router = APIRouter()

# Include routers
api_router.include_router(users.router, tags=["users"])
api_router.include_router(mood.router, tags=["mood"])
api_router.include_router(music.router, tags=["music"])
api_router.include_router(recommendations.router, tags=["recommendations"])
api_router.include_router(spotify.router, tags=["spotify"])
api_router.include_router(health.router, tags=["health"])

callback_router = spotify.callback_router
