"""Personality insight schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class PersonalityProfile(CamelModel):
    """Language-model personality summary."""
    music_dna: str = Field(alias="musicDNA")
    energy_level: float = Field(default=0.5, ge=0.0, le=1.0)
    positivity_level: float = Field(default=0.5, ge=0.0, le=1.0)
    ai_suggestion: str
    traits: List[str] = Field(default_factory=list)


class PersonalityInsightCreate(CamelModel):
    user_id: int = Field(gt=0)
    music_dna: Optional[str] = Field(default=None, alias="musicDNA")
    energy_level: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    positivity_level: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    ai_suggestion: Optional[str] = None


class PersonalityInsightResponse(CamelModel):
    """Stored insight, or the placeholder shown before any data exists (no id)."""
    id: Optional[int] = None
    user_id: Optional[int] = None
    music_dna: Optional[str] = Field(default=None, alias="musicDNA")
    energy_level: float = Field(default=0.5, ge=0.0, le=1.0)
    positivity_level: float = Field(default=0.5, ge=0.0, le=1.0)
    ai_suggestion: Optional[str] = None
    generated_at: Optional[datetime] = None
    traits: List[str] = Field(default_factory=list)
