from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from playwright.async_api import Browser, Error as PlaywrightError, Page, Playwright, async_playwright

from app.config import CHROMIUM_BIN, HEADLESS, USER_AGENT
from app.errors import LaunchError
from app.logger import get_logger

logger = get_logger("browser")

LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-blink-features=AutomationControlled',
]
VIEWPORT = {"width": 1366, "height": 850}


class BrowserSession:
    """One headless Chromium owned by a single request."""

    def __init__(self, playwright: Playwright, browser: Browser):
        self._playwright = playwright
        self._browser = browser
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def new_page(self) -> Page:
        context = await self._browser.new_context(viewport=VIEWPORT, user_agent=USER_AGENT)
        return await context.new_page()

    async def close(self):
        """Close the browser and stop the driver. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._browser.close()
        except PlaywrightError as e:
            logger.warning(f"⚠️ Browser close failed: {e}")
        finally:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.warning(f"⚠️ Playwright driver stop failed: {e}")
        logger.debug("Browser closed")


async def launch_browser(
    headless: bool = HEADLESS,
    executable_path: Optional[str] = CHROMIUM_BIN,
    args: Optional[List[str]] = None,
) -> BrowserSession:
    try:
        playwright = await async_playwright().start()
    except PlaywrightError as e:
        raise LaunchError(str(e)) from e

    try:
        browser = await playwright.chromium.launch(
            headless=headless,
            executable_path=executable_path,
            args=args or LAUNCH_ARGS,
        )
    except PlaywrightError as e:
        await playwright.stop()
        raise LaunchError(str(e)) from e

    logger.debug("Browser launched")
    return BrowserSession(playwright, browser)


Launcher = Callable[..., Awaitable[BrowserSession]]


@asynccontextmanager
async def browser_session(launcher: Launcher = launch_browser, **launch_options) -> AsyncIterator[BrowserSession]:
    """
    Acquire a browser for the duration of the block.
    The session is closed on every exit path, including errors and cancellation.
    """
    session = await launcher(**launch_options)
    try:
        yield session
    finally:
        await session.close()
