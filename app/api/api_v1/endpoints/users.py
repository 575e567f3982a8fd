from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_repository
from app.schemas import UserCreate, UserResponse
from app.services.repository import MoodRepository
from app.utils.exceptions import MoodScaleError, NotFoundError
from app.utils.logging import setup_logger

logger = setup_logger(__name__)
router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    user: UserCreate,
    repository: MoodRepository = Depends(get_repository)
):
    """Register a user. Spotify tokens are never part of the response."""
    try:
        return repository.create_user(user)
    except MoodScaleError:
        raise
    except Exception as e:
        logger.error(f"Error creating user: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create user")


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    repository: MoodRepository = Depends(get_repository)
):
    user = repository.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
