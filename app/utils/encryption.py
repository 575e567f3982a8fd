"""Fernet encryption for secrets stored in the database."""
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.types import TypeDecorator, Text

from app.core.config import settings

logger = logging.getLogger(__name__)


class TokenCipher:
    """Symmetric cipher for OAuth tokens at rest."""

    def __init__(self, key: Optional[str] = None):
        if not key:
            logger.warning(
                "ENCRYPTION_KEY is not set; using an ephemeral key. "
                "Stored Spotify tokens will be unreadable after a restart."
            )
            key = Fernet.generate_key().decode()
        try:
            self._fernet = Fernet(key.encode() if isinstance(key, str) else key)
        except (ValueError, TypeError) as e:
            raise ValueError(
                "ENCRYPTION_KEY is invalid. It must be a 32-byte url-safe base64 string."
            ) from e

    def encrypt(self, text: str) -> str:
        return self._fernet.encrypt(text.encode()).decode()

    def decrypt(self, token: str) -> str:
        return self._fernet.decrypt(token.encode()).decode()


cipher = TokenCipher(settings.ENCRYPTION_KEY)


class EncryptedString(TypeDecorator):
    """Text column transparently encrypted with the application cipher."""
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return cipher.encrypt(value)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        try:
            return cipher.decrypt(value)
        except InvalidToken:
            logger.error("Could not decrypt stored token; treating it as missing")
            return None
