"""Reupload pipeline: canonicalize, extract, transfer, cache."""

from .canonical import canonicalize, fingerprint, simple_url_match, url_cat
from .reuploader import MAX_MEDIA_SIZE, Reuploader
from .types import Manifest, MediaReference, RemoteAsset, StoredFile

__all__ = [
    "MAX_MEDIA_SIZE",
    "Manifest",
    "MediaReference",
    "RemoteAsset",
    "Reuploader",
    "StoredFile",
    "canonicalize",
    "fingerprint",
    "simple_url_match",
    "url_cat",
]
