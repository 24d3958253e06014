"""
Candidate selection policies.

All three share the navigation/extraction pipeline and only differ here:

- first under limit: walk candidates in DOM order, download each, keep the
  first whose size fits. Failed or oversized downloads are skipped.
- uniform random: one random pick, streamed, no size check, no fallback.
- single best: the page's single video element, fetched as-is.
"""
import random
from typing import Optional, Sequence

from app.config import DOWNLOAD_TIMEOUT_MS, USER_AGENT
from app.errors import DownloadError, NoEligibleVideo, VideoNotFound
from app.logger import get_logger
from app.models.video import CandidateVideo, DownloadedAsset, VideoStream

logger = get_logger("selection")


async def select_first_under_limit(
    candidates: Sequence[CandidateVideo],
    size_limit_bytes: int,
    fetcher,
    timeout_ms: int = DOWNLOAD_TIMEOUT_MS,
) -> DownloadedAsset:
    attempted = 0
    for candidate in candidates:
        attempted += 1
        try:
            asset = await fetcher.fetch(
                candidate.source_url,
                timeout_ms=timeout_ms,
                headers={"User-Agent": USER_AGENT},
            )
        except DownloadError as e:
            logger.warning(f"⚠️ Candidate {attempted}/{len(candidates)} failed: {e}")
            continue

        if asset.size_bytes <= size_limit_bytes:
            logger.info(f"✅ Candidate {attempted}/{len(candidates)} accepted ({asset.size_bytes} bytes)")
            return asset

        logger.info(
            f"⏭️ Candidate {attempted}/{len(candidates)} too large "
            f"({asset.size_bytes} > {size_limit_bytes} bytes)"
        )

    raise NoEligibleVideo(size_limit_bytes, attempted)


async def select_uniform_random(
    candidates: Sequence[CandidateVideo],
    fetcher,
    rng: Optional[random.Random] = None,
) -> VideoStream:
    if not candidates:
        raise VideoNotFound("No videos found", status_code=500)
    candidate = (rng or random).choice(candidates)
    logger.info(f"🎲 Picked {candidates.index(candidate) + 1}/{len(candidates)}")
    return await fetcher.stream(candidate.source_url)


async def select_single_best(candidate: Optional[CandidateVideo], fetcher) -> DownloadedAsset:
    if candidate is None:
        raise VideoNotFound("Video URL not found", status_code=500)
    return await fetcher.fetch(candidate.source_url)
