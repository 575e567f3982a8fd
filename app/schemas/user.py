"""User schemas."""

import re
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.base import CamelModel

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class UserCreate(CamelModel):
    username: str = Field(
        min_length=3,
        max_length=50,
        pattern=r'^[a-zA-Z0-9_]+$',
        description="Letters, numbers and underscores only"
    )
    email: Optional[str] = None
    spotify_id: Optional[str] = None

    @field_validator('email')
    def validate_email(cls, v):
        if v is not None and not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v


class UserUpdate(CamelModel):
    username: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=50,
        pattern=r'^[a-zA-Z0-9_]+$'
    )
    email: Optional[str] = None
    spotify_id: Optional[str] = None
    spotify_access_token: Optional[str] = None
    spotify_refresh_token: Optional[str] = None
    spotify_token_expires_at: Optional[datetime] = None

    @field_validator('email')
    def validate_email(cls, v):
        if v is not None and not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v


class UserResponse(CamelModel):
    """Public view of a user; tokens are never serialized."""
    id: int
    username: str
    email: Optional[str] = None
    spotify_id: Optional[str] = None
    spotify_connected: bool = False
    created_at: datetime


class SpotifyStatus(CamelModel):
    connected: bool
    spotify_id: Optional[str] = None
