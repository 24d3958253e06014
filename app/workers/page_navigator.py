import re

from playwright.async_api import Error as PlaywrightError, Page, TimeoutError as PlaywrightTimeoutError

from app.config import ACCEPT_COOKIES, NAV_TIMEOUT_MS, VIDEO_WAIT_TIMEOUT_MS
from app.errors import ElementTimeout, NavigationTimeout
from app.logger import get_logger
from app.workers.browser_session import BrowserSession

logger = get_logger("navigator")

VIDEO_SELECTOR = "video[src]"

COOKIE_BUTTON_TEXTS = [
    "Allow all cookies", "Accept all", "Accept All",
    "Only Allow Essential", "Allow essential and optional cookies"
]


async def accept_cookies_if_present(page: Page) -> bool:
    """Accept cookies if a cookie consent button is present."""
    for t in COOKIE_BUTTON_TEXTS:
        try:
            btn = page.get_by_role("button", name=re.compile(t, re.I))
            if await btn.is_visible(timeout=1000):
                await btn.click(timeout=2000)
                logger.debug(f"🍪 Dismissed cookie banner ({t})")
                return True
        except PlaywrightError as e:
            logger.debug(f"Cookie button {t!r} not clickable: {e}")
    return False


async def navigate(
    session: BrowserSession,
    url: str,
    timeout_ms: int = NAV_TIMEOUT_MS,
    accept_cookies: bool = ACCEPT_COOKIES,
) -> Page:
    """Open a page and load url until the network goes idle."""
    page = await session.new_page()
    logger.info(f"🌍 Navigating → {url}")
    try:
        await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise NavigationTimeout(url, timeout_ms) from e

    if accept_cookies:
        await accept_cookies_if_present(page)
    return page


async def wait_for_video_element(page: Page, timeout_ms: int = VIDEO_WAIT_TIMEOUT_MS):
    """Block until a <video> with a src attribute is attached to the DOM."""
    try:
        await page.wait_for_selector(VIDEO_SELECTOR, state="attached", timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise ElementTimeout(VIDEO_SELECTOR, timeout_ms) from e
    logger.debug("✅ Video element attached")
