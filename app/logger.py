import logging
import os
import time
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import Request

from app.config import LOG_DIR, LOG_LEVEL

LOGGER_NAME = "adrelay"
MAX_LOG_BYTES = 5 * 1024 * 1024  # 5MB
LOG_BACKUPS = 5

_configured = False


def setup_logging(level: str = LOG_LEVEL, log_dir: Optional[str] = LOG_DIR) -> logging.Logger:
    """
    Setup the application logger once.
    Console output plus rotating combined.log / error.log files when log_dir is set.
    """
    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    if _configured:
        return logger

    logger.setLevel(level)
    logger.propagate = False
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Console handler
    ch = logging.StreamHandler()
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

        # File handlers with UTF-8 encoding (fixes Windows emoji errors)
        combined = RotatingFileHandler(
            os.path.join(log_dir, "combined.log"),
            maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8",
        )
        combined.setFormatter(formatter)
        logger.addHandler(combined)

        errors = RotatingFileHandler(
            os.path.join(log_dir, "error.log"),
            maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8",
        )
        errors.setLevel(logging.ERROR)
        errors.setFormatter(formatter)
        logger.addHandler(errors)

    _configured = True
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


_api_logger = get_logger("api")
_video_logger = get_logger("video")


async def log_requests(request: Request, call_next):
    """HTTP middleware: logs every request and its response status/duration."""
    start = time.monotonic()
    _api_logger.info(
        f"API Request {request.method} {request.url.path}"
        f"{'?' + request.url.query if request.url.query else ''}"
        f" from {request.client.host if request.client else '-'}"
    )
    response = await call_next(request)
    duration_ms = (time.monotonic() - start) * 1000
    _api_logger.info(
        f"API Response {request.method} {request.url.path} → {response.status_code} ({duration_ms:.0f}ms)"
    )
    return response


def log_video(action: str, url: str, size: Optional[int] = None):
    """Record the outcome of a video extraction."""
    if size is None:
        _video_logger.info(f"🎬 {action}: {url[:120]} (streamed)")
    else:
        _video_logger.info(f"🎬 {action}: {url[:120]} ({size / (1024 * 1024):.1f}MB)")
