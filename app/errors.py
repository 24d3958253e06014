from datetime import datetime, timezone
from typing import List, Optional

import requests
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.logger import get_logger

logger = get_logger("errors")


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        return "fail" if str(self.status_code).startswith("4") else "error"


class ValidationError(AppError):
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class WebhookError(AppError):
    """Upstream workflow webhook answered with a non-2xx status."""

    def __init__(self, status: int, reason: str, body: str = ""):
        super().__init__(f"N8N webhook failed: {status} {reason}".strip())
        self.upstream_status = status
        self.body = body


# ---------- extraction ----------

class ExtractionError(AppError):
    """Base class for failures of the ad-video extraction pipeline."""


class LaunchError(ExtractionError):
    def __init__(self, details: str):
        super().__init__(f"Browser failed to launch: {details}")


class NavigationTimeout(ExtractionError):
    def __init__(self, url: str, timeout_ms: int):
        super().__init__(f"Navigation to {url} timed out after {timeout_ms}ms")
        self.url = url
        self.timeout_ms = timeout_ms


class ElementTimeout(ExtractionError):
    def __init__(self, selector: str, timeout_ms: int):
        super().__init__(f"No '{selector}' element appeared within {timeout_ms}ms")
        self.selector = selector
        self.timeout_ms = timeout_ms


class DownloadError(ExtractionError):
    def __init__(self, url: str, details: str):
        super().__init__(f"Failed to download video: {details}")
        self.url = url


class VideoNotFound(ExtractionError):
    status_code = 404

    def __init__(self, message: str = "No videos found on the page", status_code: Optional[int] = None):
        super().__init__(message, status_code)


class NoEligibleVideo(ExtractionError):
    status_code = 404

    def __init__(self, size_limit_bytes: int, attempted: int):
        limit_mb = size_limit_bytes / (1024 * 1024)
        super().__init__(f"No video under {limit_mb:g}MB found")
        self.size_limit_bytes = size_limit_bytes
        self.attempted = attempted


# ---------- handlers ----------

def error_envelope(request: Request, message: str, status_code: int, errors: Optional[List[str]] = None) -> JSONResponse:
    content = {
        "success": False,
        "error": {"message": message, "statusCode": status_code},
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
    }
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


def _log_error(request: Request, exc: Exception, status_code: int):
    log = logger.warning if status_code < 500 else logger.error
    log(f"❌ {request.method} {request.url.path} → {status_code}: {type(exc).__name__}: {exc}")


async def app_error_handler(request: Request, exc: AppError):
    _log_error(request, exc, exc.status_code)
    return error_envelope(request, exc.message, exc.status_code, getattr(exc, "errors", None))


async def network_error_handler(request: Request, exc: requests.exceptions.ConnectionError):
    _log_error(request, exc, 503)
    return error_envelope(request, "Network error - unable to connect to external service", 503)


async def timeout_error_handler(request: Request, exc: PlaywrightTimeoutError):
    _log_error(request, exc, 408)
    return error_envelope(request, "Request timeout", 408)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_envelope(request, "Internal server error", 500)


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(requests.exceptions.ConnectionError, network_error_handler)
    app.add_exception_handler(PlaywrightTimeoutError, timeout_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
