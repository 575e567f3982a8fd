"""Application exceptions mapped to HTTP status codes."""


class MoodScaleError(Exception):
    """Base error carrying the HTTP status it should be reported with."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(MoodScaleError):
    status_code = 400


class SpotifyNotConnectedError(MoodScaleError):
    status_code = 401

    def __init__(self, message: str = "Spotify not connected"):
        super().__init__(message)


class NotFoundError(MoodScaleError):
    status_code = 404


class RateLimitExceededError(MoodScaleError):
    status_code = 429


class DatabaseError(MoodScaleError):
    status_code = 500


class IntegrationError(MoodScaleError):
    """An external service (Spotify, OpenAI) is unavailable or misconfigured."""
    status_code = 503


class BackupError(MoodScaleError):
    status_code = 500
