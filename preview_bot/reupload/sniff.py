"""Content sniffing and the media type policy."""

from __future__ import annotations

import threading
from typing import Dict, Iterable, Optional, Tuple

import magic

from ..exceptions import UnsupportedMediaType

# libmagic only needs the head of the payload
SNIFF_BYTES = 8192

DEFAULT_ALLOWED_TYPES: Tuple[str, ...] = ("video/mp4", "image/jpeg", "image/png", "image/gif")

EXTENSION_BY_TYPE: Dict[str, str] = {
    "video/mp4": ".mp4",
    "image/jpeg": ".jpeg",
    "image/png": ".png",
    "image/gif": ".gif",
}

TYPE_BY_EXTENSION: Dict[str, str] = {
    ".mp4": "video/mp4",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".json": "application/json",
}

_magic: Optional[magic.Magic] = None
# A libmagic cookie must not be shared across threads concurrently
_magic_lock = threading.Lock()


def sniff_content_type(data: bytes) -> str:
    """Detect the MIME type from the leading bytes, ignoring any headers."""
    global _magic
    with _magic_lock:
        if _magic is None:
            _magic = magic.Magic(mime=True)
        return _magic.from_buffer(data[:SNIFF_BYTES])


def check_allowed(data: bytes, allowed_types: Iterable[str] = DEFAULT_ALLOWED_TYPES) -> str:
    """Return the sniffed type, or raise ``UnsupportedMediaType``."""
    content_type = sniff_content_type(data)
    if content_type not in allowed_types or content_type not in EXTENSION_BY_TYPE:
        raise UnsupportedMediaType(content_type)
    return content_type


def extension_for(content_type: str) -> str:
    return EXTENSION_BY_TYPE[content_type]


def content_type_for_name(name: str) -> Optional[str]:
    """Content type from a stored file name's extension, or None."""
    dot = name.rfind(".")
    if dot <= 0:
        return None
    return TYPE_BY_EXTENSION.get(name[dot:].lower())
