"""Manifest cache: one ``<fingerprint>.json`` object per completed reupload."""

from __future__ import annotations

from ..exceptions import ManifestNotFound, ObjectNotFound
from ..utils.logging import get_logger
from .destinations.base import Destination
from .types import Manifest

logger = get_logger(__name__)


def manifest_name(fp: str) -> str:
    return f"{fp}.json"


class ManifestStore:
    """Reads and writes manifests through the configured destination."""

    def __init__(self, destination: Destination):
        self.destination = destination

    async def load(self, fp: str) -> Manifest:
        """Return the stored manifest.

        Raises ``ManifestNotFound`` on a miss and ``ManifestCorrupt`` when the
        object exists but does not parse. Other destination errors propagate.
        """
        try:
            raw = await self.destination.download(manifest_name(fp))
        except ObjectNotFound as e:
            raise ManifestNotFound(f"no manifest for {fp}") from e
        return Manifest.from_json(raw)

    async def save(self, fp: str, manifest: Manifest) -> None:
        await self.destination.upload(manifest_name(fp), manifest.to_json())
        logger.debug(
            f"📝 Manifest written for {fp} ({len(manifest.files)} files)",
            extra={"subsys": "reupload", "event": "manifest.write", "fingerprint": fp},
        )
