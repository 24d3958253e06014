"""Browser session, navigation and candidate extraction against fake Playwright objects."""
import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from app.errors import ElementTimeout, LaunchError, NavigationTimeout
from app.workers import browser_session as browser_module
from app.workers.browser_session import BrowserSession, browser_session
from app.workers.candidate_extractor import extract_candidates, extract_single_candidate, to_candidates
from app.workers.page_navigator import VIDEO_SELECTOR, navigate, wait_for_video_element
from fakes import FakeLauncher, FakePage


class FakeBrowser:
    def __init__(self, fail_close=False):
        self.close_calls = 0
        self.fail_close = fail_close

    async def close(self):
        self.close_calls += 1
        if self.fail_close:
            raise PlaywrightError("Target closed")


class FakePlaywright:
    def __init__(self, launch_error=None):
        self.stop_calls = 0
        self.launch_error = launch_error
        self.chromium = self

    async def launch(self, **options):
        if self.launch_error:
            raise self.launch_error
        return FakeBrowser()

    async def stop(self):
        self.stop_calls += 1


# ---------- session ----------

def test_session_closed_when_block_raises(page):
    launcher = FakeLauncher(page)

    async def use():
        async with browser_session(launcher):
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(use())
    assert launcher.sessions[0].close_calls == 1


def test_session_closed_when_cancelled(page):
    launcher = FakeLauncher(page)

    async def use():
        async with browser_session(launcher):
            await asyncio.sleep(10)

    async def main():
        task = asyncio.ensure_future(use())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(main())
    assert launcher.sessions[0].closed


def test_browser_session_close_is_idempotent():
    playwright, browser = FakePlaywright(), FakeBrowser()
    session = BrowserSession(playwright, browser)

    asyncio.run(session.close())
    asyncio.run(session.close())

    assert session.closed
    assert browser.close_calls == 1
    assert playwright.stop_calls == 1


def test_browser_close_failure_still_stops_driver():
    playwright, browser = FakePlaywright(), FakeBrowser(fail_close=True)
    asyncio.run(BrowserSession(playwright, browser).close())
    assert playwright.stop_calls == 1


def test_launch_failure_raises_launch_error(monkeypatch):
    playwright = FakePlaywright(launch_error=PlaywrightError("Executable doesn't exist"))

    class Starter:
        async def start(self):
            return playwright

    monkeypatch.setattr(browser_module, "async_playwright", lambda: Starter())

    with pytest.raises(LaunchError) as exc:
        asyncio.run(browser_module.launch_browser())
    assert "Executable doesn't exist" in str(exc.value)
    assert playwright.stop_calls == 1


# ---------- navigation ----------

def test_navigate_waits_for_network_idle(page, launcher):
    session = asyncio.run(launcher())
    result = asyncio.run(navigate(session, "https://example.test", timeout_ms=60000, accept_cookies=False))
    assert result is page
    assert page.calls[0] == ("goto", "https://example.test", "networkidle", 60000)


def test_navigation_timeout():
    page = FakePage(goto_timeout=True)
    session = asyncio.run(FakeLauncher(page)())
    with pytest.raises(NavigationTimeout) as exc:
        asyncio.run(navigate(session, "https://example.test", timeout_ms=60000, accept_cookies=False))
    assert exc.value.timeout_ms == 60000
    assert exc.value.status_code == 500


def test_wait_for_video_element(page):
    asyncio.run(wait_for_video_element(page, timeout_ms=15000))
    assert page.calls[-1] == ("wait_for_selector", VIDEO_SELECTOR, "attached", 15000)


def test_element_timeout():
    with pytest.raises(ElementTimeout) as exc:
        asyncio.run(wait_for_video_element(FakePage(sources=[]), timeout_ms=15000))
    assert "15000ms" in str(exc.value)


# ---------- extraction ----------

def test_extract_candidates_keeps_order_and_drops_blanks():
    page = FakePage(sources=["https://cdn.test/2.mp4", "", None, "https://cdn.test/1.mp4"])
    result = asyncio.run(extract_candidates(page))
    assert [c.source_url for c in result] == ["https://cdn.test/2.mp4", "https://cdn.test/1.mp4"]


def test_extract_candidates_empty_page_returns_empty_list():
    assert asyncio.run(extract_candidates(FakePage(sources=[]))) == []


def test_extract_single_candidate(page):
    candidate = asyncio.run(extract_single_candidate(page))
    assert candidate.source_url == "https://cdn.test/a.mp4"
    assert asyncio.run(extract_single_candidate(FakePage(sources=[]))) is None


def test_to_candidates_strips_whitespace():
    assert [c.source_url for c in to_candidates(["  https://x/1.mp4 ", "   "])] == ["https://x/1.mp4"]
