from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_repository
from app.core.config import settings
from app.schemas import MoodEntryCreate, MoodEntryResponse, UserStats
from app.services.mood_analytics import build_user_stats
from app.services.repository import MAX_TREND_DAYS, MoodRepository
from app.utils.exceptions import MoodScaleError
from app.utils.logging import setup_logger

logger = setup_logger(__name__)
router = APIRouter()


@router.get("/mood-entries/{user_id}", response_model=List[MoodEntryResponse])
async def get_mood_entries(
    user_id: int,
    limit: int = Query(50),
    repository: MoodRepository = Depends(get_repository)
):
    """Newest entries first; at most 100 are returned."""
    try:
        return repository.get_mood_entries(user_id, limit)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error fetching mood entries for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch mood entries")


@router.post("/mood-entries", response_model=MoodEntryResponse)
async def create_mood_entry(
    entry: MoodEntryCreate,
    repository: MoodRepository = Depends(get_repository)
):
    try:
        return repository.create_mood_entry(entry)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error creating mood entry: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create mood entry")


@router.get("/mood-trends/{user_id}", response_model=List[MoodEntryResponse])
async def get_mood_trends(
    user_id: int,
    days: int = Query(7),
    repository: MoodRepository = Depends(get_repository)
):
    """Entries from the last `days` days, oldest first."""
    try:
        return repository.get_mood_trends(user_id, days)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error fetching mood trends for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch mood trends")


@router.get("/user-stats/{user_id}", response_model=UserStats)
async def get_user_stats(
    user_id: int,
    repository: MoodRepository = Depends(get_repository)
):
    try:
        recent_entries = repository.get_mood_entries(user_id, 1)
        week_entries = repository.get_mood_trends(user_id, 7)
        year_entries = repository.get_mood_trends(user_id, MAX_TREND_DAYS)
        songs_analyzed = len(repository.get_music_analysis(user_id, 100))

        return UserStats(**build_user_stats(
            recent_entries,
            week_entries,
            songs_analyzed,
            streak_entries=year_entries,
            tz_name=settings.TIMEZONE
        ))
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error computing stats for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch user stats")
