"""
Ad-video extraction pipeline.

One request runs one browser through a fixed sequence of states:

    IDLE → NAVIGATING → WAITING_FOR_MEDIA → EXTRACTING → SELECTING → DELIVERING → CLOSED

NAVIGATING exits on network idle (NavigationTimeout after nav_timeout_ms).
WAITING_FOR_MEDIA exits once a video[src] is attached (ElementTimeout after
wait_timeout_ms). The two timeouts run one after the other. Any error moves
the run to FAILED; the browser is closed before the error reaches the caller
and the run always ends in CLOSED.
"""
import random
from enum import Enum
from typing import List, Optional

from fastapi.responses import Response

from app.config import (
    ACCEPT_COOKIES,
    DOWNLOAD_TIMEOUT_MS,
    MAX_VIDEO_SIZE_BYTES,
    NAV_TIMEOUT_MS,
    VIDEO_WAIT_TIMEOUT_MS,
)
from app.errors import VideoNotFound
from app.logger import get_logger, log_video
from app.models.video import DownloadedAsset, ExtractionRequest, SelectionPolicy
from app.workers.browser_session import Launcher, browser_session, launch_browser
from app.workers.candidate_extractor import extract_candidates, extract_single_candidate
from app.workers.delivery import Payload, deliver
from app.workers.page_navigator import navigate, wait_for_video_element
from app.workers.selection import select_first_under_limit, select_single_best, select_uniform_random
from app.workers.video_fetcher import VideoFetcher

logger = get_logger("extraction")


class ExtractionState(str, Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    WAITING_FOR_MEDIA = "waiting_for_media"
    EXTRACTING = "extracting"
    SELECTING = "selecting"
    DELIVERING = "delivering"
    FAILED = "failed"
    CLOSED = "closed"


class ExtractionRun:
    """State history of a single pipeline run."""

    def __init__(self, request: ExtractionRequest):
        self.request = request
        self.state = ExtractionState.IDLE
        self.history: List[ExtractionState] = [ExtractionState.IDLE]
        self.error: Optional[BaseException] = None

    def advance(self, state: ExtractionState):
        logger.debug(f"{self.state.value} → {state.value} ({self.request.target_url[:80]})")
        self.state = state
        self.history.append(state)

    def fail(self, error: BaseException):
        self.error = error
        self.advance(ExtractionState.FAILED)


class ExtractionPipeline:
    def __init__(
        self,
        launcher: Launcher = launch_browser,
        fetcher=None,
        nav_timeout_ms: int = NAV_TIMEOUT_MS,
        wait_timeout_ms: int = VIDEO_WAIT_TIMEOUT_MS,
        download_timeout_ms: int = DOWNLOAD_TIMEOUT_MS,
        size_limit_bytes: int = MAX_VIDEO_SIZE_BYTES,
        accept_cookies: bool = ACCEPT_COOKIES,
        rng: Optional[random.Random] = None,
    ):
        self.launcher = launcher
        self.fetcher = fetcher or VideoFetcher()
        self.nav_timeout_ms = nav_timeout_ms
        self.wait_timeout_ms = wait_timeout_ms
        self.download_timeout_ms = download_timeout_ms
        self.size_limit_bytes = size_limit_bytes
        self.accept_cookies = accept_cookies
        self.rng = rng

    async def run(self, request: ExtractionRequest, run: Optional[ExtractionRun] = None) -> Response:
        run = run or ExtractionRun(request)
        try:
            async with browser_session(self.launcher) as session:
                run.advance(ExtractionState.NAVIGATING)
                page = await navigate(session, request.target_url, self.nav_timeout_ms, self.accept_cookies)

                run.advance(ExtractionState.WAITING_FOR_MEDIA)
                await wait_for_video_element(page, self.wait_timeout_ms)

                run.advance(ExtractionState.EXTRACTING)
                payload = await self._extract_and_select(page, request, run)

                run.advance(ExtractionState.DELIVERING)
                response = await deliver(payload, request)
        except BaseException as e:
            run.fail(e)
            log = logger.warning if getattr(e, "status_code", 500) < 500 else logger.error
            log(f"❌ Extraction failed for {request.target_url}: {type(e).__name__}: {e}")
            raise
        finally:
            run.advance(ExtractionState.CLOSED)

        if isinstance(payload, DownloadedAsset):
            log_video(request.selection_policy.value, payload.source_url, payload.size_bytes)
        else:
            log_video(request.selection_policy.value, payload.source_url)
        return response

    async def _extract_and_select(self, page, request: ExtractionRequest, run: ExtractionRun) -> Payload:
        policy = request.selection_policy

        if policy == SelectionPolicy.SINGLE_BEST:
            candidate = await extract_single_candidate(page)
            run.advance(ExtractionState.SELECTING)
            return await select_single_best(candidate, self.fetcher)

        candidates = await extract_candidates(page)
        run.advance(ExtractionState.SELECTING)

        if policy == SelectionPolicy.UNIFORM_RANDOM:
            return await select_uniform_random(candidates, self.fetcher, self.rng)

        if not candidates:
            raise VideoNotFound()
        size_limit = request.size_limit_bytes if request.size_limit_bytes is not None else self.size_limit_bytes
        return await select_first_under_limit(candidates, size_limit, self.fetcher, self.download_timeout_ms)
