from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_insight_engine, get_repository, get_spotify_service
from app.schemas import GeneratedRecommendation, PersonalityInsightResponse, RecommendationResponse
from app.services.insight_engine import InsightEngine
from app.services.recommendation import PersonalityService, RecommendationService
from app.services.repository import MoodRepository
from app.services.spotify_service import SpotifyService
from app.utils.exceptions import MoodScaleError
from app.utils.logging import setup_logger

logger = setup_logger(__name__)
router = APIRouter()


@router.get("/recommendations/{user_id}", response_model=List[GeneratedRecommendation])
async def get_recommendations(
    user_id: int,
    mood: Optional[str] = Query(None),
    limit: int = Query(10),
    repository: MoodRepository = Depends(get_repository),
    spotify: SpotifyService = Depends(get_spotify_service),
    engine: InsightEngine = Depends(get_insight_engine)
):
    """
    Recommend tracks for the user's current mood.

    Args:
        mood: Overrides the mood taken from the latest entry
        limit: Number of tracks to request from Spotify
    """
    try:
        service = RecommendationService(repository, spotify, engine)
        return await service.generate(user_id, mood=mood, limit=limit)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error generating recommendations for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to get recommendations")


@router.get("/recommendations/{user_id}/history", response_model=List[RecommendationResponse])
async def get_recommendation_history(
    user_id: int,
    limit: int = Query(20),
    repository: MoodRepository = Depends(get_repository)
):
    try:
        return repository.get_recommendations(user_id, limit)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error fetching recommendations for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch recommendations")


@router.get("/personality-insights/{user_id}", response_model=PersonalityInsightResponse)
async def get_personality_insights(
    user_id: int,
    repository: MoodRepository = Depends(get_repository),
    engine: InsightEngine = Depends(get_insight_engine)
):
    try:
        return await PersonalityService(repository, engine).get_insight(user_id)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error generating personality insights for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate personality insights")
