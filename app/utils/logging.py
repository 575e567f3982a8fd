import logging
import os
from datetime import datetime
from typing import Optional

from app.core.config import settings

def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Set up a logger with detailed formatting.

    Args:
        name: Logger name (usually __name__)
        level: Optional logging level override

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Set level from settings or default to INFO
    log_level = (
        level or
        settings.LOG_LEVEL or
        'INFO'
    ).upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    formatter = logging.Formatter(
        fmt=(
            '%(asctime)s | %(levelname)-8s | '
            '%(name)s:%(funcName)s:%(lineno)d | '
            '%(message)s'
        ),
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Add handlers if they haven't been added already
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        # File handler only when LOG_DIR is set
        log_dir = settings.LOG_DIR
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(
                os.path.join(
                    log_dir,
                    f"{datetime.now().strftime('%Y-%m-%d')}.log"
                )
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger

def mask_secret(value: Optional[str], visible: int = 5) -> str:
    """Mask a secret for log output, keeping only the last few characters."""
    if not value:
        return 'None'
    return f"{'*' * 10}{value[-visible:]}"
