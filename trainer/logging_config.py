"""Logging configuration for the training engine and the storage service."""

import logging
import logging.handlers
from pathlib import Path
from typing import List, Optional

from .config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Handlers added by the last setup_logging() call
_installed: List[logging.Handler] = []


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Install console (and optional rotating file) handlers on the root logger.

    level and log_file default to the engine settings. Calling this again
    replaces the handlers of the previous call instead of stacking them.
    """
    if level is None and log_file is None:
        settings = get_settings()
        level, log_file = settings.log_level, settings.log_file

    root_logger = logging.getLogger()
    for handler in _installed:
        if handler in root_logger.handlers:
            root_logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    root_logger.setLevel(level or "INFO")
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    _installed.append(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        _installed.append(file_handler)

    for handler in _installed:
        root_logger.addHandler(handler)

    # Third-party libraries are noisy at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("chess").setLevel(logging.WARNING)

    logging.info("Logging configured successfully")
