"""rclone WebDAV destination: ``rclone+webdav://host:port/path`` spoken as plain http."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit, urlunsplit

import httpx

from ...exceptions import ConfigurationError, DestinationError, ObjectNotFound
from ...http_client import SharedHttpClient
from ...utils.logging import get_logger
from ..canonical import url_cat
from .base import AbstractDestination

logger = get_logger(__name__)

DEFAULT_MAX_SIZE = 500 * 1024 * 1024


class WebDAVDestination(AbstractDestination):
    def __init__(
        self,
        base_url: str,
        http_client: SharedHttpClient,
        max_size: int = DEFAULT_MAX_SIZE,
    ):
        self.base_url = base_url
        self.http = http_client
        self.max_size = max_size

    @classmethod
    async def from_url(
        cls,
        url: str,
        http_client: Optional[SharedHttpClient] = None,
        max_media_size: int = DEFAULT_MAX_SIZE,
        **_,
    ) -> "WebDAVDestination":
        if http_client is None:
            raise ConfigurationError("rclone+webdav destination needs an HTTP client")
        parts = urlsplit(url)
        if not parts.netloc:
            raise ConfigurationError(f"rclone+webdav destination needs a host: {url}")
        base = urlunsplit(("http", parts.netloc, parts.path, parts.query, ""))
        return cls(base, http_client, max_media_size)

    async def _upload(self, name: str, data: bytes) -> None:
        try:
            resp = await self.http.request(
                "PUT", url_cat(self.base_url, name), content=data
            )
        except httpx.HTTPError as e:
            raise DestinationError(f"uploading file to rclone+webdav: {e}") from e
        if not resp.is_success:
            raise DestinationError(f"unexpected status code: {resp.status_code}")

    async def _download(self, name: str) -> bytes:
        try:
            async with self.http.stream("GET", url_cat(self.base_url, name)) as resp:
                if resp.status_code == 404:
                    raise ObjectNotFound(name)
                if not resp.is_success:
                    raise DestinationError(f"unexpected response status: {resp.status_code}")

                declared = resp.headers.get("Content-Length")
                if declared and declared.isdigit() and int(declared) > self.max_size:
                    raise DestinationError(f"media too large: {name}")

                buf = bytearray()
                async for chunk in resp.aiter_bytes():
                    buf.extend(chunk)
                    if len(buf) > self.max_size:
                        raise DestinationError(f"media too large: {name}")
        except httpx.HTTPError as e:
            raise DestinationError(f"downloading file from rclone+webdav: {e}") from e

        if not buf:
            raise DestinationError(f"media is empty: {name}")
        return bytes(buf)

    def describe(self) -> str:
        return f"rclone+webdav: {self.base_url!r}"
