"""Logging configuration for the remote authorization service."""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def _rotating_handler(filename: str, level: int) -> RotatingFileHandler:
    """File handler with rotation (10MB max, keep 5 backups)."""
    handler = RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=10 * 1024 * 1024,
        backupCount=5
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


logger = logging.getLogger("app")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Decisions and cache activity
    logger.addHandler(_rotating_handler("app.log", logging.DEBUG))
    # Transport failures and startup errors only
    logger.addHandler(_rotating_handler("errors.log", logging.ERROR))

# Keep uvicorn and the HTTP client from drowning out decision logs
logging.getLogger("uvicorn").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
