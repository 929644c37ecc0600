"""
Extractor construction from configuration URLs.
[CA][CMV]
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List
from urllib.parse import urlsplit

from ...exceptions import ConfigurationError
from ...http_client import SharedHttpClient
from ...utils.logging import get_logger
from .base import Extractor
from .cobalt import CobaltExtractor
from .fastdl import FastDLExtractor

logger = get_logger(__name__)

EXTRACTOR_REGISTRY: Dict[str, Any] = {
    "cobalt": CobaltExtractor,
    "fastdl": FastDLExtractor,
}


def create_extractor(url: str, http_client: SharedHttpClient) -> Extractor:
    scheme = urlsplit(url).scheme
    cls = EXTRACTOR_REGISTRY.get(scheme)
    if cls is None:
        raise ConfigurationError(f"unknown extractor: {scheme or url!r}")
    return cls.from_url(url, http_client)


def create_extractors(urls: Iterable[str], http_client: SharedHttpClient) -> List[Extractor]:
    """Build extractors in configured priority order."""
    extractors = [create_extractor(u, http_client) for u in urls]
    for ex in extractors:
        logger.info(f"🔌 Extractor ready: {ex.describe()}", extra={"subsys": "extractor"})
    return extractors
