import asyncio
import base64
import itertools
import json
import time

import requests

import pytest

from app.errors import DownloadError
from app.models.video import DownloadedAsset, ExtractionRequest, OutputMode, SelectionPolicy, VideoStream
from app.workers import video_fetcher
from app.workers.delivery import deliver, video_mime
from fakes import META_URL, TIKTOK_URL, FakeResponse

VIDEO = bytes(range(256)) * 8


def make_request(mode, url=META_URL, **kwargs):
    return ExtractionRequest(
        target_url=url,
        selection_policy=SelectionPolicy.SINGLE_BEST,
        output_mode=mode,
        **kwargs,
    )


def asset(content=VIDEO, content_type="video/mp4"):
    return DownloadedAsset(content=content, content_type=content_type, source_url="https://cdn.test/v.mp4")


def test_raw_attachment_headers_and_body():
    res = asyncio.run(deliver(asset(), make_request(OutputMode.RAW_ATTACHMENT, filename="ad-video.mp4")))
    assert res.status_code == 200
    assert res.media_type == "video/mp4"
    assert res.headers["content-disposition"] == 'attachment; filename="ad-video.mp4"'
    assert res.body == VIDEO


def test_video_mime_falls_back_to_mp4():
    assert video_mime("application/octet-stream") == "video/mp4"
    assert video_mime("video/webm; codecs=vp9") == "video/webm"
    assert video_mime("") == "video/mp4"


def test_multipart_form_contains_video_and_fields():
    request = make_request(
        OutputMode.MULTIPART_FORM,
        filename="user-meta-video.mp4",
        form_fields=(("brandUrl", "https://brand.test/"), ("email", "ops@brand.test")),
    )
    res = asyncio.run(deliver(asset(), request))

    content_type = res.headers["content-type"]
    assert content_type.startswith("multipart/form-data; boundary=")
    boundary = content_type.split("boundary=")[1].encode()
    body = res.body
    assert body.count(b"--" + boundary) == 4  # three parts + closing delimiter
    assert b'name="video"; filename="user-meta-video.mp4"' in body
    assert b"Content-Type: video/mp4" in body
    assert VIDEO in body
    assert b'name="brandUrl"\r\n\r\nhttps://brand.test/' in body
    assert b'name="email"\r\n\r\nops@brand.test' in body


@pytest.mark.parametrize("url, platform", [(META_URL, "meta"), (TIKTOK_URL, "tiktok")])
def test_base64_json_round_trip(url, platform):
    res = asyncio.run(deliver(asset(), make_request(OutputMode.BASE64_JSON, url=url)))
    payload = json.loads(res.body)
    assert payload["platform"] == platform
    assert payload["videoUrl"] == "https://cdn.test/v.mp4"
    assert base64.b64decode(payload["base64"]) == VIDEO


def test_stream_delivered_as_streaming_attachment():
    stream = VideoStream(response=FakeResponse(VIDEO), content_type="video/mp4", source_url="https://cdn.test/v.mp4")
    res = asyncio.run(deliver(stream, make_request(OutputMode.RAW_ATTACHMENT, filename="random-meta-video.mp4")))
    assert res.headers["content-disposition"] == 'attachment; filename="random-meta-video.mp4"'
    assert b"".join(stream.iter_chunks(chunk_size=100)) == VIDEO
    assert stream.response.closed


def test_stream_closed_after_response_even_if_unread():
    stream = VideoStream(response=FakeResponse(VIDEO), content_type="video/mp4", source_url="https://cdn.test/v.mp4")
    res = asyncio.run(deliver(stream, make_request(OutputMode.RAW_ATTACHMENT)))

    assert not stream.response.closed
    asyncio.run(res.background())
    assert stream.response.closed


def test_stream_buffered_for_base64():
    response = FakeResponse(VIDEO)
    stream = VideoStream(response=response, content_type="video/mp4", source_url="https://cdn.test/v.mp4")
    res = asyncio.run(deliver(stream, make_request(OutputMode.BASE64_JSON)))
    assert base64.b64decode(json.loads(res.body)["base64"]) == VIDEO
    assert response.closed


# ---------- fetcher ----------

class StubResponse:
    def __init__(self, status_code=200, content=b"", headers=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size=1):
        yield self.content

    def close(self):
        self.closed = True


def test_download_video_buffers_body(monkeypatch):
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        return StubResponse(content=b"abc", headers={"Content-Type": "video/mp4"})

    monkeypatch.setattr(video_fetcher.requests, "get", fake_get)
    result = video_fetcher.download_video("https://cdn.test/v.mp4", timeout_ms=20000, headers={"User-Agent": "UA"})

    assert result.content == b"abc"
    assert result.size_bytes == 3
    assert calls[0][1]["timeout"] == 20
    assert calls[0][1]["headers"] == {"User-Agent": "UA"}


def test_download_video_http_error(monkeypatch):
    monkeypatch.setattr(video_fetcher.requests, "get", lambda url, **kw: StubResponse(status_code=403))
    with pytest.raises(DownloadError) as exc:
        video_fetcher.download_video("https://cdn.test/v.mp4")
    assert "403" in str(exc.value)


def test_download_video_timeout(monkeypatch):
    def fake_get(url, **kwargs):
        raise requests.exceptions.Timeout("read timed out")

    monkeypatch.setattr(video_fetcher.requests, "get", fake_get)
    with pytest.raises(DownloadError):
        video_fetcher.download_video("https://cdn.test/v.mp4")


def test_open_video_stream_is_lazy(monkeypatch):
    calls = []

    def fake_get(url, **kwargs):
        calls.append(kwargs)
        return StubResponse(content=b"xyz")

    monkeypatch.setattr(video_fetcher.requests, "get", fake_get)
    stream = asyncio.run(video_fetcher.VideoFetcher().stream("https://cdn.test/v.mp4"))

    assert calls[0]["stream"] is True
    assert stream.content_type == "video/mp4"
    assert stream.read_all().content == b"xyz"


class DripResponse(StubResponse):
    """Body that arrives one byte per chunk."""

    def iter_content(self, chunk_size=1):
        for i in range(len(self.content)):
            yield self.content[i:i + 1]


def test_download_video_deadline_covers_whole_body(monkeypatch):
    response = DripResponse(content=b"12345")
    monkeypatch.setattr(video_fetcher.requests, "get", lambda url, **kw: response)
    # each chunk arrives 0.8s after the previous one
    ticks = itertools.count(0, 0.8)
    monkeypatch.setattr(video_fetcher.time, "monotonic", lambda: next(ticks))

    with pytest.raises(DownloadError) as exc:
        video_fetcher.download_video("https://cdn.test/slow.mp4", timeout_ms=2000)

    assert "exceeded 2000ms" in str(exc.value)
    assert response.closed


def test_fetch_gives_up_on_a_stalled_download(monkeypatch):
    def stalled_get(url, **kwargs):
        time.sleep(0.5)
        return StubResponse(content=b"late")

    monkeypatch.setattr(video_fetcher.requests, "get", stalled_get)
    fetcher = video_fetcher.VideoFetcher()

    async def timed_fetch():
        started = time.monotonic()
        try:
            await fetcher.fetch("https://cdn.test/slow.mp4", timeout_ms=50)
        finally:
            elapsed.append(time.monotonic() - started)

    elapsed = []
    with pytest.raises(DownloadError):
        asyncio.run(timed_fetch())
    assert elapsed[0] < 0.4
