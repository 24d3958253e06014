from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple

import requests

from app.errors import DownloadError

CHUNK_SIZE = 1024 * 1024


class SelectionPolicy(str, Enum):
    FIRST_UNDER_LIMIT = "first_under_limit"  # first candidate in DOM order within the size bound
    UNIFORM_RANDOM = "uniform_random"        # one random pick, no size check, no fallback
    SINGLE_BEST = "single_best"              # the single video element on the page


class OutputMode(str, Enum):
    RAW_ATTACHMENT = "raw_attachment"
    MULTIPART_FORM = "multipart_form"
    BASE64_JSON = "base64_json"


@dataclass(frozen=True)
class ExtractionRequest:
    target_url: str
    selection_policy: SelectionPolicy
    output_mode: OutputMode
    size_limit_bytes: Optional[int] = None
    filename: str = "ad-video.mp4"
    form_fields: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class CandidateVideo:
    source_url: str


@dataclass
class DownloadedAsset:
    content: bytes = field(repr=False)
    content_type: str
    source_url: str

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass
class VideoStream:
    """A streamed download whose body has not been read yet."""
    response: requests.Response = field(repr=False)
    content_type: str
    source_url: str

    def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        try:
            for chunk in self.response.iter_content(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        finally:
            self.close()

    def read_all(self) -> DownloadedAsset:
        try:
            content = b"".join(self.iter_chunks())
        except requests.exceptions.RequestException as e:
            raise DownloadError(self.source_url, str(e)) from e
        return DownloadedAsset(
            content=content,
            content_type=self.content_type,
            source_url=self.source_url,
        )

    def close(self):
        self.response.close()
