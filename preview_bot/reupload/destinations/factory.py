"""
Destination construction from a configuration URL.
[CA][CMV]
"""
from __future__ import annotations

from typing import Any, Dict
from urllib.parse import urlsplit

from ...exceptions import ConfigurationError
from ...utils.logging import get_logger
from .b2 import B2Destination
from .base import Destination
from .fs import FSDestination
from .webdav import WebDAVDestination

logger = get_logger(__name__)

DESTINATION_REGISTRY: Dict[str, Any] = {
    "b2": B2Destination,
    "fs": FSDestination,
    "rclone+webdav": WebDAVDestination,
}


async def create_destination(url: str, **deps: Any) -> Destination:
    """Build the destination named by ``url``'s scheme.

    ``deps`` (http_client, max_media_size) are passed to every variant,
    which picks what it needs.
    """
    scheme = urlsplit(url).scheme
    cls = DESTINATION_REGISTRY.get(scheme)
    if cls is None:
        raise ConfigurationError(f"unknown destination: {scheme or url!r}")
    dest = await cls.from_url(url, **deps)
    logger.info(f"💾 Destination ready: {dest.describe()}", extra={"subsys": "destination"})
    return dest
