"""
Pytest configuration and shared fixtures for the preview bot tests.

Media samples are real file headers so libmagic identifies them the same
way it identifies full downloads.
"""

import os
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional

import httpx
import pytest

# Keep the JSONL sink out of the repo during tests
os.environ.setdefault("LOG_JSONL_PATH", "/tmp/preview-bot-tests/bot.jsonl")

from preview_bot.exceptions import ObjectNotFound  # noqa: E402
from preview_bot.http_client import SharedHttpClient  # noqa: E402
from preview_bot.reupload.destinations.base import AbstractDestination  # noqa: E402

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
    b"\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00\x05\x18\xd8N"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)

GIF_BYTES = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\xff\xff\xff\x00\x00\x00"
    b"!\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
)

JPEG_BYTES = (
    b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    b"\xff\xdb\x00C\x00" + bytes(range(1, 65)) + b"\xff\xd9"
)

MP4_BYTES = (
    b"\x00\x00\x00\x20ftypisom\x00\x00\x02\x00isomiso2avc1mp41"
    b"\x00\x00\x00\x08free"
    b"\x00\x00\x00\x10mdat" + b"\x00" * 8
)

HTML_BYTES = (
    b"<!DOCTYPE html>\n<html><head><title>Login required</title></head>"
    b"<body><p>Please sign in to continue.</p></body></html>\n"
)


@pytest.fixture
def media():
    return SimpleNamespace(png=PNG_BYTES, gif=GIF_BYTES, jpeg=JPEG_BYTES, mp4=MP4_BYTES, html=HTML_BYTES)


class MemoryDestination(AbstractDestination):
    """In-memory destination recording every upload."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.uploads: List[str] = []
        self.downloads: List[str] = []
        self.closed = False

    async def _upload(self, name: str, data: bytes) -> None:
        self.uploads.append(name)
        self.objects[name] = data

    async def _download(self, name: str) -> bytes:
        self.downloads.append(name)
        try:
            return self.objects[name]
        except KeyError:
            raise ObjectNotFound(name)

    async def close(self) -> None:
        self.closed = True

    def describe(self) -> str:
        return "memory destination"


class StubExtractor:
    """Extractor answering from a fixed table, counting calls."""

    def __init__(self, patterns, result=None, error: Optional[Exception] = None, name="stub"):
        self.patterns = tuple(patterns)
        self.result = result or []
        self.error = error
        self.name = name
        self.calls: List[str] = []

    def is_supported(self, url: str) -> bool:
        from preview_bot.reupload.canonical import simple_url_match

        return simple_url_match(url, self.patterns)

    async def extract(self, url: str) -> List[str]:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return list(self.result)

    def describe(self) -> str:
        return f"{self.name} extractor"


@pytest.fixture
def memory_destination():
    return MemoryDestination()


@pytest.fixture
def mock_http():
    """Factory: build a SharedHttpClient over an httpx.MockTransport handler."""
    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> SharedHttpClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return SharedHttpClient({}, client=client)

    return _make


@pytest.fixture
def make_extractor():
    return StubExtractor
