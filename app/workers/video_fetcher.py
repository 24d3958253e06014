import functools
import time
from typing import Dict, Optional

import anyio.to_thread
import requests
from starlette.concurrency import run_in_threadpool

from app.config import FETCH_TIMEOUT_MS
from app.errors import DownloadError
from app.models.video import DownloadedAsset, VideoStream

DEFAULT_CONTENT_TYPE = "video/mp4"
# Small reads so the deadline is checked often on slow bodies
READ_CHUNK_SIZE = 64 * 1024


def _content_type(res: requests.Response) -> str:
    return res.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE


def download_video(url: str, timeout_ms: int = FETCH_TIMEOUT_MS, headers: Optional[Dict[str, str]] = None) -> DownloadedAsset:
    """
    Fetch the full body into memory.

    timeout_ms bounds the whole download, not just connect and each socket read.
    """
    deadline = time.monotonic() + timeout_ms / 1000
    try:
        res = requests.get(url, headers=headers, timeout=timeout_ms / 1000, stream=True)
        try:
            res.raise_for_status()
            chunks = []
            for chunk in res.iter_content(chunk_size=READ_CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise DownloadError(url, f"download exceeded {timeout_ms}ms")
                chunks.append(chunk)
        finally:
            res.close()
    except requests.exceptions.RequestException as e:
        raise DownloadError(url, str(e)) from e
    return DownloadedAsset(content=b"".join(chunks), content_type=_content_type(res), source_url=url)


def open_video_stream(url: str, timeout_ms: int = FETCH_TIMEOUT_MS, headers: Optional[Dict[str, str]] = None) -> VideoStream:
    """Open a streamed download; the body is read later by the response writer."""
    try:
        res = requests.get(url, headers=headers, timeout=timeout_ms / 1000, stream=True)
        res.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise DownloadError(url, str(e)) from e
    return VideoStream(response=res, content_type=_content_type(res), source_url=url)


class VideoFetcher:
    """Async facade over requests; blocking I/O runs in the threadpool."""

    def __init__(self, default_timeout_ms: int = FETCH_TIMEOUT_MS):
        self.default_timeout_ms = default_timeout_ms

    async def fetch(self, url: str, timeout_ms: Optional[int] = None, headers: Optional[Dict[str, str]] = None) -> DownloadedAsset:
        timeout_ms = timeout_ms or self.default_timeout_ms
        job = functools.partial(download_video, url, timeout_ms, headers)
        try:
            # The worker is abandoned on timeout; its own deadline ends it at the next chunk
            with anyio.fail_after(timeout_ms / 1000):
                return await anyio.to_thread.run_sync(job, abandon_on_cancel=True)
        except TimeoutError:
            raise DownloadError(url, f"download exceeded {timeout_ms}ms")

    async def stream(self, url: str, timeout_ms: Optional[int] = None, headers: Optional[Dict[str, str]] = None) -> VideoStream:
        return await run_in_threadpool(open_video_stream, url, timeout_ms or self.default_timeout_ms, headers)
