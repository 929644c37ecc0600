"""
cobalt (https://github.com/imputnet/cobalt) extractor.

Configured as ``cobalt://host[:port][/path][?insecure][&key=API_KEY]``.
"""

from __future__ import annotations

from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlsplit, urlunsplit

from ...exceptions import CobaltError, ConfigurationError, ExtractorError
from ...http_client import SharedHttpClient
from ...utils.logging import get_logger
from .base import AbstractExtractor

logger = get_logger(__name__)

COBALT_PATTERNS = (
    "instagram.com/reel/*",
    "tiktok.com/t/*",
    "tiktok.com/@*/video/*",
    "vm.tiktok.com/*",
    "twitter.com/*/status/*",
    "t.co/*",
    "x.com/*/status/*",
    "bsky.app/profile/*/post/*",
    "twitch.tv/*/clip/*",
    "youtube.com/shorts/*",
    "reddit.com/r/*/comments/*",
    "old.reddit.com/r/*/comments/*",
    "redd.it/*",
    "v.redd.it/*",
)


class CobaltExtractor(AbstractExtractor):
    name = "cobalt"
    patterns = COBALT_PATTERNS

    def __init__(self, endpoint: str, http_client: SharedHttpClient, api_key: Optional[str] = None):
        super().__init__(endpoint, http_client)
        self.api_key = api_key

    @classmethod
    def from_url(cls, url: str, http_client: SharedHttpClient) -> "CobaltExtractor":
        parts = urlsplit(url)
        if not parts.netloc:
            raise ConfigurationError(f"cobalt extractor needs a host: {url}")
        query = parse_qs(parts.query, keep_blank_values=True)
        scheme = "http" if "insecure" in query else "https"
        endpoint = urlunsplit((scheme, parts.netloc, parts.path or "/", "", ""))
        api_key = (query.get("key") or [None])[0] or None
        return cls(endpoint, http_client, api_key)

    async def extract(self, url: str) -> List[str]:
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Api-Key {self.api_key}"

        resp = await self._post({"url": url}, headers=headers)
        body = self._json(resp)
        if not isinstance(body, dict):
            raise ExtractorError("unexpected cobalt response body")

        status = body.get("status")
        if not resp.is_success or status == "error":
            error = body.get("error") or {}
            code = error.get("code") if isinstance(error, dict) else None
            raise CobaltError(code or f"http {resp.status_code}")

        if status in ("redirect", "tunnel"):
            return [body["url"]] if body.get("url") else []
        if status == "picker":
            items = body.get("picker") or []
            return [item["url"] for item in items if isinstance(item, dict) and item.get("url")]

        raise ExtractorError(f"unexpected cobalt response status: {status}")

    def describe(self) -> str:
        return f"cobalt.tools at {self.endpoint}"
