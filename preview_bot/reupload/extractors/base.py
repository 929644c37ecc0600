"""
Base interfaces and helpers for media extractors.
[CA][CMV][IV]
"""

from __future__ import annotations

import abc
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import httpx

from ...exceptions import ExtractorError
from ...http_client import SharedHttpClient
from ..canonical import simple_url_match


@runtime_checkable
class Extractor(Protocol):
    def is_supported(self, url: str) -> bool:
        """Cheap, offline check whether this extractor handles ``url``."""
        ...

    async def extract(self, url: str) -> List[str]:
        """Resolve a post URL into one or more direct media URLs."""
        ...

    def describe(self) -> str:
        ...


class AbstractExtractor(abc.ABC):
    """Extractors that POST JSON to a companion service."""

    name = "extractor"
    patterns: Sequence[str] = ()

    def __init__(self, endpoint: str, http_client: SharedHttpClient):
        self.endpoint = endpoint
        self.http = http_client

    def is_supported(self, url: str) -> bool:
        return simple_url_match(url, self.patterns)

    def __str__(self) -> str:
        return self.describe()

    async def _post(
        self, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        try:
            return await self.http.post_json(self.endpoint, payload, headers=headers)
        except httpx.HTTPError as e:
            raise ExtractorError(f"making {self.name} request: {e}") from e

    def _json(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ExtractorError(
                f"parsing {self.name} response: HTTP {resp.status_code}: {e}"
            ) from e

    @abc.abstractmethod
    async def extract(self, url: str) -> List[str]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def describe(self) -> str:  # pragma: no cover
        raise NotImplementedError
