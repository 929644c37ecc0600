"""
Reuploader: source URL in, permalinks out. [CA][REH][PA]

Fast path returns the permalinks recorded in the manifest for the URL's
fingerprint. Slow path extracts direct media URLs, transfers each asset to
the destination, then writes the manifest. Concurrent slow paths for the
same fingerprint are coalesced into one.
"""

from __future__ import annotations

import time
from typing import Iterable, List, Optional, Sequence

import httpx

from ..exceptions import (
    ExtractionFailed,
    ExtractorError,
    ManifestNotFound,
    MediaTooLarge,
    NoExtractorMatched,
    ReuploadError,
    TransferError,
    TransferRejected,
)
from ..http_client import SharedHttpClient
from ..metrics import (
    METRIC_ASSETS_FAILED,
    METRIC_ASSETS_STORED,
    METRIC_CACHE_HITS,
    METRIC_CACHE_MISSES,
    METRIC_REUPLOAD_DURATION,
    METRIC_REUPLOAD_FAILURES,
    Metrics,
)
from ..metrics.null_metrics import NoopMetrics
from ..utils.logging import get_logger
from .canonical import url_cat
from .destinations.base import Destination
from .extractors.base import Extractor
from .manifest import ManifestStore
from .single_flight import SingleFlightGroup
from .sniff import DEFAULT_ALLOWED_TYPES, check_allowed, extension_for
from .types import Manifest, MediaReference, RemoteAsset, StoredFile

logger = get_logger(__name__)

MAX_MEDIA_SIZE = 500 * 1024 * 1024


def _failure_reason(exc: BaseException) -> str:
    if isinstance(exc, NoExtractorMatched):
        return "no_extractor"
    if isinstance(exc, ExtractionFailed):
        return "extraction"
    if isinstance(exc, TransferRejected):
        return "rejected"
    if isinstance(exc, TransferError):
        return "transfer"
    return "other"


class Reuploader:
    """Coordinates extractors, the destination and the manifest cache."""

    def __init__(
        self,
        extractors: Sequence[Extractor],
        destination: Destination,
        public_url: str,
        http_client: SharedHttpClient,
        max_media_size: int = MAX_MEDIA_SIZE,
        allowed_types: Iterable[str] = DEFAULT_ALLOWED_TYPES,
        metrics: Optional[Metrics] = None,
    ):
        self.extractors = list(extractors)
        self.destination = destination
        self.public_url = public_url
        self.http = http_client
        self.max_media_size = max_media_size
        self.allowed_types = frozenset(allowed_types)
        self.manifests = ManifestStore(destination)
        self.flights = SingleFlightGroup()
        self.metrics = metrics or NoopMetrics()
        self._define_metrics()

    def _define_metrics(self) -> None:
        self.metrics.define_counter(METRIC_CACHE_HITS, "Reuploads answered from a manifest")
        self.metrics.define_counter(METRIC_CACHE_MISSES, "Reuploads that took the slow path")
        self.metrics.define_counter(METRIC_ASSETS_STORED, "Media files written to the destination")
        self.metrics.define_counter(METRIC_ASSETS_FAILED, "Picker assets skipped after a failure")
        self.metrics.define_counter(
            METRIC_REUPLOAD_FAILURES, "Failed reuploads by reason", labels=["reason"]
        )
        self.metrics.define_histogram(METRIC_REUPLOAD_DURATION, "Slow path duration in seconds")

    def is_supported(self, url: str) -> bool:
        return any(ex.is_supported(url) for ex in self.extractors)

    async def reupload(self, source_url: str) -> List[str]:
        """Return public permalinks for every media file of ``source_url``.

        Raises a ``ReuploadError`` subclass on failure. Nothing is written to
        the cache when the transfer fails.
        """
        ref = MediaReference.from_url(source_url)
        log_extra = {"subsys": "reupload", "fingerprint": ref.fingerprint}

        try:
            manifest = await self.manifests.load(ref.fingerprint)
        except ManifestNotFound:
            pass
        else:
            self.metrics.inc(METRIC_CACHE_HITS)
            logger.debug(
                f"⚡ Cache hit for {ref.canonical_url}", extra={**log_extra, "event": "cache.hit"}
            )
            return self._permalinks(manifest.files)

        self.metrics.inc(METRIC_CACHE_MISSES)
        manifest, shared = await self.flights.do(ref.fingerprint, lambda: self._slow_path(ref))
        if shared:
            logger.debug(
                f"🔗 Shared reupload result for {ref.canonical_url}",
                extra={**log_extra, "event": "single_flight.shared"},
            )
        return self._permalinks(manifest.files)

    async def _slow_path(self, ref: MediaReference) -> Manifest:
        log_extra = {"subsys": "reupload", "fingerprint": ref.fingerprint}
        started = time.monotonic()
        try:
            remote_urls = await self.extract(ref.canonical_url)
            files = await self._transfer_many(remote_urls, ref.fingerprint)
            manifest = Manifest.new(ref.canonical_url, [f.name for f in files])
            await self.manifests.save(ref.fingerprint, manifest)
        except ReuploadError as e:
            self.metrics.inc(METRIC_REUPLOAD_FAILURES, labels={"reason": _failure_reason(e)})
            raise

        elapsed = time.monotonic() - started
        self.metrics.observe(METRIC_REUPLOAD_DURATION, elapsed)
        logger.info(
            f"✅ Reuploaded {ref.canonical_url} as {len(manifest.files)} file(s) in {elapsed:.2f}s",
            extra={**log_extra, "event": "reupload.done", "detail": {"files": manifest.files}},
        )
        return manifest

    async def extract(self, url: str) -> List[str]:
        """Try each matching extractor in order until one yields URLs."""
        errors: List[Exception] = []
        for extractor in self.extractors:
            if not extractor.is_supported(url):
                continue
            try:
                remote_urls = await extractor.extract(url)
            except ReuploadError as e:
                error: Exception = e
            except Exception as e:
                error = ExtractorError(f"{extractor.describe()} crashed: {e!r}")
                error.__cause__ = e
            else:
                if remote_urls:
                    return list(remote_urls)
                error = ExtractorError(f"{extractor.describe()} returned no media")

            logger.warning(
                f"⚠ {extractor.describe()} failed for {url}: {error}",
                extra={"subsys": "extractor", "event": "extract.error"},
            )
            errors.append(error)

        if not errors:
            raise NoExtractorMatched(url)
        raise ExtractionFailed(url, errors)

    async def _transfer_many(self, remote_urls: List[str], fp: str) -> List[StoredFile]:
        if len(remote_urls) == 1:
            asset = RemoteAsset(remote_urls[0])
            try:
                return [await self.transfer(asset, fp)]
            except ReuploadError:
                self.metrics.inc(METRIC_ASSETS_FAILED)
                raise

        stored: List[StoredFile] = []
        failures: List[str] = []
        for i, url in enumerate(remote_urls, start=1):
            asset = RemoteAsset(url, index=i)
            try:
                stored.append(await self.transfer(asset, fp))
            except ReuploadError as e:
                self.metrics.inc(METRIC_ASSETS_FAILED)
                failures.append(f"#{i}: {e}")
                logger.warning(
                    f"⚠ Skipping asset {i}/{len(remote_urls)} of {fp}: {e}",
                    extra={"subsys": "reupload", "event": "transfer.skip", "fingerprint": fp},
                )

        if not stored:
            raise TransferError(f"every asset failed: {'; '.join(failures)}")
        return stored

    async def transfer(self, asset: RemoteAsset, fp: str) -> StoredFile:
        """Fetch one asset within the size cap, check its type, store it."""
        data = await self._fetch(asset.url)
        content_type = check_allowed(data, self.allowed_types)
        name = asset.base_name(fp) + extension_for(content_type)

        await self.destination.upload(name, data)
        self.metrics.inc(METRIC_ASSETS_STORED)
        logger.debug(
            f"📦 Stored {name} ({len(data)} bytes, {content_type})",
            extra={"subsys": "reupload", "event": "transfer.stored", "fingerprint": fp},
        )
        return StoredFile(name=name, content_type=content_type, data=data)

    async def _fetch(self, url: str) -> bytes:
        try:
            async with self.http.stream("GET", url) as resp:
                if resp.status_code != 200:
                    raise TransferError(f"unexpected status fetching remote url: {resp.status_code}")

                declared = resp.headers.get("Content-Length", "")
                if declared.isdigit() and int(declared) > self.max_media_size:
                    raise MediaTooLarge(int(declared), self.max_media_size)

                buf = bytearray()
                async for chunk in resp.aiter_bytes():
                    buf.extend(chunk)
                    if len(buf) > self.max_media_size:
                        raise MediaTooLarge(len(buf), self.max_media_size)
        except httpx.HTTPError as e:
            raise TransferError(f"fetching remote url: {e}") from e
        except (httpx.InvalidURL, ValueError) as e:
            # malformed asset urls from an extractor fail this asset only
            raise TransferError(f"invalid remote url {url!r}: {e}") from e

        if not buf:
            raise TransferError("expecting media response body to not be empty")
        return bytes(buf)

    def _permalinks(self, files: List[str]) -> List[str]:
        return [url_cat(self.public_url, name) for name in files]
