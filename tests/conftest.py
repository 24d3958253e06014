import pytest

from fakes import FakeFetcher, FakeLauncher, FakePage


@pytest.fixture
def page():
    return FakePage(sources=["https://cdn.test/a.mp4", "https://cdn.test/b.mp4", "https://cdn.test/c.mp4"])


@pytest.fixture
def launcher(page):
    return FakeLauncher(page)


@pytest.fixture
def fetcher():
    return FakeFetcher({
        "https://cdn.test/a.mp4": b"A" * 300,
        "https://cdn.test/b.mp4": b"B" * 200,
        "https://cdn.test/c.mp4": b"C" * 50,
    })
