"""
Shared async HTTP client with pooled connections and per-host limits. [PA][RM]

This module provides one client for every outbound call the bot makes:
- extractor API calls (cobalt, fastdl)
- streaming downloads of remote media during transfer
- WebDAV uploads and downloads

There are deliberately no retries here. A failed call surfaces to the
caller, which wraps it into the matching pipeline error.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import urlparse

import httpx
from httpx import AsyncClient, Response

from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RequestConfig:
    """Timeouts for individual HTTP requests. [CMV]"""

    connect_timeout: float = 5.0  # seconds
    read_timeout: float = 30.0  # seconds
    write_timeout: float = 30.0  # seconds
    pool_timeout: float = 5.0  # seconds


@dataclass
class HostLimits:
    """Per-host concurrency limits. [REH]"""

    max_concurrent: int = 8


@dataclass
class ClientMetrics:
    """HTTP client metrics for monitoring. [PA]"""

    requests_total: int = 0
    requests_success: int = 0
    requests_failed: int = 0
    streams_opened: int = 0
    total_bytes_downloaded: int = 0
    avg_response_time_ms: float = 0.0


class SharedHttpClient:
    """Shared async HTTP client. [PA][RM]"""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        client: Optional[AsyncClient] = None,
    ):
        """Initialize shared HTTP client with configuration.

        An already built ``httpx.AsyncClient`` may be injected; it is then
        used as is and closed by ``stop()``.
        """
        self.config = config or {}
        self.client: Optional[AsyncClient] = client
        self.metrics = ClientMetrics()

        self.host_semaphores: Dict[str, asyncio.Semaphore] = {}
        self.host_limits: Dict[str, HostLimits] = {}

        self.default_config = RequestConfig(
            connect_timeout=float(self.config.get("HTTP_CONNECT_TIMEOUT_MS", 5000)) / 1000,
            read_timeout=float(self.config.get("HTTP_READ_TIMEOUT_MS", 30000)) / 1000,
        )

        self.http2_enabled = bool(self.config.get("HTTP2_ENABLE", True))
        self.max_connections = int(self.config.get("HTTP_MAX_CONNECTIONS", 64))
        self.max_keepalive = int(self.config.get("HTTP_MAX_KEEPALIVE_CONNECTIONS", 32))

        logger.debug(
            f"🌐 SharedHttpClient initialized (HTTP/2: {self.http2_enabled})",
            extra={"subsys": "http"},
        )

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.stop()

    async def start(self) -> None:
        """Start the HTTP client."""
        if self.client is not None:
            return  # Already started

        limits = httpx.Limits(
            max_connections=self.max_connections,
            max_keepalive_connections=self.max_keepalive,
            keepalive_expiry=30.0,
        )

        timeout = httpx.Timeout(
            connect=self.default_config.connect_timeout,
            read=self.default_config.read_timeout,
            write=self.default_config.write_timeout,
            pool=self.default_config.pool_timeout,
        )

        # Some platforms' CDNs refuse obviously non-browser clients
        headers = {
            "User-Agent": (
                "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
            ),
            "Accept-Language": "en-US,en;q=0.5",
        }

        self.client = AsyncClient(
            limits=limits,
            timeout=timeout,
            headers=headers,
            http2=self.http2_enabled,
            follow_redirects=True,
            max_redirects=5,
            cookies=httpx.Cookies(),
        )

        logger.info("✅ SharedHttpClient started", extra={"subsys": "http"})

    async def stop(self) -> None:
        """Stop the HTTP client and clean up resources."""
        if self.client is not None:
            await self.client.aclose()
            self.client = None
            logger.info("🛑 SharedHttpClient stopped", extra={"subsys": "http"})

    def _get_host_semaphore(self, host: str) -> asyncio.Semaphore:
        """Get or create per-host concurrency semaphore. [RM]"""
        if host not in self.host_semaphores:
            limits = self.host_limits.get(host, HostLimits())
            self.host_semaphores[host] = asyncio.Semaphore(limits.max_concurrent)
        return self.host_semaphores[host]

    def _record_timing(self, start_time: float) -> None:
        response_time = (time.monotonic() - start_time) * 1000
        n = self.metrics.requests_success
        self.metrics.avg_response_time_ms = (
            self.metrics.avg_response_time_ms * (n - 1) + response_time
        ) / n

    async def request(self, method: str, url: str, **kwargs) -> Response:
        """Make one HTTP request; the body is read fully. [REH][PA]

        Transport errors propagate as ``httpx.HTTPError``. Status codes are
        left to the caller.
        """
        if self.client is None:
            await self.start()

        host = urlparse(url).netloc.lower()
        semaphore = self._get_host_semaphore(host)
        start_time = time.monotonic()

        async with semaphore:
            self.metrics.requests_total += 1
            try:
                response = await self.client.request(method=method, url=url, **kwargs)
            except httpx.HTTPError as e:
                self.metrics.requests_failed += 1
                logger.debug(
                    f"🔴 HTTP {method} failed: {e}",
                    extra={
                        "subsys": "http",
                        "event": "http.error",
                        "detail": {"url": url, "error": str(e)},
                    },
                )
                raise

        self.metrics.requests_success += 1
        self.metrics.total_bytes_downloaded += len(response.content)
        self._record_timing(start_time)
        return response

    async def get(self, url: str, **kwargs) -> Response:
        """Make GET request."""
        return await self.request("GET", url, **kwargs)

    async def post_json(
        self, url: str, payload: Any, headers: Optional[Dict[str, str]] = None
    ) -> Response:
        """POST a JSON body, asking for a JSON reply."""
        merged = {"Accept": "application/json"}
        if headers:
            merged.update(headers)
        return await self.request("POST", url, json=payload, headers=merged)

    @asynccontextmanager
    async def stream(self, method: str, url: str, **kwargs) -> AsyncIterator[Response]:
        """Open a streaming response; the body is read by the caller. [RM]

        The per-host slot is held until the context exits.
        """
        if self.client is None:
            await self.start()

        host = urlparse(url).netloc.lower()
        semaphore = self._get_host_semaphore(host)

        async with semaphore:
            self.metrics.requests_total += 1
            self.metrics.streams_opened += 1
            try:
                async with self.client.stream(method, url, **kwargs) as response:
                    self.metrics.requests_success += 1
                    yield response
                    self.metrics.total_bytes_downloaded += response.num_bytes_downloaded
            except httpx.HTTPError:
                self.metrics.requests_failed += 1
                raise

    def get_metrics(self) -> ClientMetrics:
        """Get current HTTP client metrics."""
        return self.metrics

    def set_host_limits(self, host: str, limits: HostLimits) -> None:
        """Configure per-host limits. [CMV]"""
        self.host_limits[host] = limits
        self.host_semaphores.pop(host, None)
        logger.info(
            f"🔧 Set limits for {host}: max_concurrent={limits.max_concurrent}",
            extra={"subsys": "http"},
        )
