from typing import List, Optional

from playwright.async_api import Page

from app.logger import get_logger
from app.models.video import CandidateVideo
from app.workers.page_navigator import VIDEO_SELECTOR

logger = get_logger("extractor")

# el.src is the resolved absolute URL, unlike getAttribute('src')
EXTRACT_SOURCES_JS = "els => els.map(el => el.src).filter(Boolean)"


def to_candidates(sources) -> List[CandidateVideo]:
    return [CandidateVideo(src.strip()) for src in sources if src and src.strip()]


async def extract_candidates(page: Page) -> List[CandidateVideo]:
    """Every video source on the page, in DOM order. Empty when none are found."""
    sources = await page.eval_on_selector_all(VIDEO_SELECTOR, EXTRACT_SOURCES_JS)
    candidates = to_candidates(sources or [])
    logger.info(f"📥 Found {len(candidates)} video candidate(s)")
    return candidates


async def extract_single_candidate(page: Page) -> Optional[CandidateVideo]:
    """The first <video> element's source, or None."""
    video = await page.query_selector("video")
    if video is None:
        return None
    src = await video.evaluate("el => el.src")
    candidates = to_candidates([src])
    return candidates[0] if candidates else None
