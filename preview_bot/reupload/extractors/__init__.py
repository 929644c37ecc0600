"""Extractors resolving post URLs into direct media URLs."""

from .base import AbstractExtractor, Extractor
from .cobalt import CobaltExtractor
from .factory import EXTRACTOR_REGISTRY, create_extractor, create_extractors
from .fastdl import FastDLExtractor

__all__ = [
    "AbstractExtractor",
    "CobaltExtractor",
    "EXTRACTOR_REGISTRY",
    "Extractor",
    "FastDLExtractor",
    "create_extractor",
    "create_extractors",
]
