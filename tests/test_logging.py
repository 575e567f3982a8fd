"""
Tests for logger setup.
"""

import logging
from unittest.mock import patch

from app.utils.logging import mask_secret, setup_logger


def test_logger_level_comes_from_settings():
    with patch("app.utils.logging.settings.LOG_LEVEL", "debug"):
        logger = setup_logger("moodscale.tests.level")
    assert logger.level == logging.DEBUG


def test_logger_writes_to_log_dir(tmp_path):
    with patch("app.utils.logging.settings.LOG_DIR", str(tmp_path)):
        logger = setup_logger("moodscale.tests.file")
    try:
        assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
        assert list(tmp_path.glob("*.log"))
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_mask_secret():
    assert mask_secret(None) == "None"
    assert mask_secret("abcdefghij") == "**********fghij"
