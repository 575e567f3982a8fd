"""Application configuration."""
from functools import lru_cache
from typing import List, Optional, Any
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

def clean_int_value(v: Any) -> int:
    """Clean integer values from environment variables."""
    if isinstance(v, str):
        # Remove any comments and whitespace
        v = v.split('#')[0].strip()
    return int(v)

class Settings(BaseSettings):
    # Application settings
    PROJECT_NAME: str = "MoodScale Backend"
    API_PREFIX: str = "/api"
    BACKEND_CORS_ORIGINS: List[str] = ["*"]
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    TIMEZONE: str = "UTC"

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Database settings
    DATABASE_URL: str = "postgresql://localhost:5432/moodscale"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Security settings
    ENCRYPTION_KEY: Optional[str] = None

    # Spotify OAuth settings
    SPOTIFY_CLIENT_ID: Optional[str] = None
    SPOTIFY_CLIENT_SECRET: Optional[str] = None
    SPOTIFY_REDIRECT_URI: str = "https://localhost:5000/callback"
    SPOTIFY_AUTH_STATE: str = "moodscale-auth"
    SPOTIFY_REQUEST_TIMEOUT: int = 30
    DEFAULT_USER_ID: int = 1

    # OpenAI settings
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o"

    # Rate limiting
    RATE_LIMIT_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    MOOD_ENTRY_RATE_LIMIT: int = 10
    MUSIC_ANALYSIS_RATE_LIMIT: int = 20
    API_RATE_LIMIT: int = 100

    # Retention
    RECOMMENDATION_RETENTION_DAYS: int = 90
    INSIGHT_REFRESH_DAYS: int = 7

    # Monitoring
    MONITORING_ENABLED: bool = False
    MONITOR_INTERVAL_SECONDS: int = 60

    # Backups
    BACKUP_ENABLED: bool = False
    BACKUP_PATH: str = "./backups"
    BACKUP_RETENTION_DAYS: int = 30
    BACKUP_COMPRESSION: bool = True

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Allow extra fields in the environment
    )

    # Validators for integer fields
    _clean_ints = field_validator('PORT', 'DATABASE_POOL_SIZE', 'DATABASE_MAX_OVERFLOW',
                                  'SPOTIFY_REQUEST_TIMEOUT', 'DEFAULT_USER_ID',
                                  'RATE_LIMIT_WINDOW_SECONDS', 'MOOD_ENTRY_RATE_LIMIT',
                                  'MUSIC_ANALYSIS_RATE_LIMIT', 'API_RATE_LIMIT',
                                  'RECOMMENDATION_RETENTION_DAYS', 'INSIGHT_REFRESH_DAYS',
                                  'MONITOR_INTERVAL_SECONDS', 'BACKUP_RETENTION_DAYS',
                                  mode='before')(clean_int_value)

@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()

settings = get_settings()
