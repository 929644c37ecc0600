"""Instagram proxy extractor, ``fastdl://host[:port][/path]`` (always plain http)."""

from __future__ import annotations

from typing import List
from urllib.parse import urlsplit, urlunsplit

from ...exceptions import ConfigurationError, ExtractorError
from ...http_client import SharedHttpClient
from .base import AbstractExtractor

FASTDL_PATTERNS = (
    "instagram.com/reel/*",
    "instagram.com/p/*",
    "instagram.com/story/*",
)


class FastDLExtractor(AbstractExtractor):
    name = "fastdl"
    patterns = FASTDL_PATTERNS

    @classmethod
    def from_url(cls, url: str, http_client: SharedHttpClient) -> "FastDLExtractor":
        parts = urlsplit(url)
        if not parts.netloc:
            raise ConfigurationError(f"fastdl extractor needs a host: {url}")
        endpoint = urlunsplit(("http", parts.netloc, parts.path or "/", parts.query, ""))
        return cls(endpoint, http_client)

    async def extract(self, url: str) -> List[str]:
        resp = await self._post({"target": url})
        body = self._json(resp)
        if not isinstance(body, dict):
            raise ExtractorError("unexpected fastdl response body")

        if not resp.is_success:
            raise ExtractorError(body.get("msg") or f"fastdl http {resp.status_code}")

        remote_urls = body.get("remote_urls") or []
        return [u for u in remote_urls if isinstance(u, str) and u]

    def describe(self) -> str:
        return f"fastdl proxy at {self.endpoint}"
