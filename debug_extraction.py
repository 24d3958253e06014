"""
Debug script to diagnose video extraction on an ads library page.
Opens the page, lists every video candidate and checks each one's size.
"""
import asyncio
import sys

from app.config import AD_LIBRARY_URL, DOWNLOAD_TIMEOUT_MS, MAX_VIDEO_SIZE_BYTES, USER_AGENT
from app.errors import DownloadError, ExtractionError
from app.logger import setup_logging
from app.workers.browser_session import browser_session
from app.workers.candidate_extractor import extract_candidates
from app.workers.page_navigator import navigate, wait_for_video_element
from app.workers.platform_detector import detect_ad_platform
from app.workers.video_fetcher import VideoFetcher


async def debug_extraction(url: str):
    """Run navigation + extraction on a single URL with detailed output"""
    print(f"\n{'='*80}")
    print(f"Testing: {url}")
    print(f"Platform: {detect_ad_platform(url) or 'unknown'}")
    print(f"{'='*80}")

    async with browser_session() as session:
        print("🌐 Navigating to page...")
        page = await navigate(session, url)
        print(f"📄 Page loaded: {await page.title()}")

        print("⏳ Waiting for video elements...")
        await wait_for_video_element(page)

        candidates = await extract_candidates(page)
        print(f"🎬 {len(candidates)} candidate(s)\n")

        fetcher = VideoFetcher()
        for i, candidate in enumerate(candidates, 1):
            print(f"{i}. {candidate.source_url[:100]}...")
            try:
                asset = await fetcher.fetch(
                    candidate.source_url,
                    timeout_ms=DOWNLOAD_TIMEOUT_MS,
                    headers={"User-Agent": USER_AGENT},
                )
            except DownloadError as e:
                print(f"   ❌ {e}")
                continue
            fits = "✅ fits" if asset.size_bytes <= MAX_VIDEO_SIZE_BYTES else "⛔ too large"
            print(f"   {asset.size_bytes / (1024 * 1024):.1f}MB {asset.content_type} {fits}")


def main():
    setup_logging(log_dir=None)
    print("🔍 Ad Video Extraction Debugger")
    url = sys.argv[1] if len(sys.argv) > 1 else AD_LIBRARY_URL
    try:
        asyncio.run(debug_extraction(url))
    except ExtractionError as e:
        print(f"❌ {type(e).__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
