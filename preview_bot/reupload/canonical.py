"""
URL canonicalization and fingerprinting.

Equivalent links to the same post (tracking parameters, fragments) must map
to one canonical string, and therefore one fingerprint and one cache entry.
"""

from __future__ import annotations

import fnmatch
import hashlib
from typing import Dict, FrozenSet, Iterable, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..exceptions import CanonicalizationError

FINGERPRINT_LENGTH = 12

# Query parameters that identify content rather than track the visitor.
# Keyed by lower-cased host without a leading "www.".
DEFAULT_ALLOWED_PARAMS: Dict[str, FrozenSet[str]] = {
    "youtube.com": frozenset({"v", "t"}),
    "m.youtube.com": frozenset({"v", "t"}),
    "youtu.be": frozenset({"t"}),
}


def _host_key(hostname: str) -> str:
    host = hostname.lower()
    if host.startswith("www."):
        host = host[len("www."):]
    return host


def canonicalize(
    raw_url: str, allowed_params: Mapping[str, Iterable[str]] = DEFAULT_ALLOWED_PARAMS
) -> str:
    """Strip the fragment and every query parameter not allowed for the host.

    Retained parameters are sorted by name; repeated values keep their
    relative order. The result is stable under a second application.
    """
    try:
        parts = urlsplit(raw_url.strip())
        hostname = parts.hostname
    except ValueError as e:
        raise CanonicalizationError(f"invalid url {raw_url!r}: {e}") from e

    if not parts.scheme or not hostname:
        raise CanonicalizationError(f"invalid url {raw_url!r}: missing scheme or host")

    allowed = set(allowed_params.get(_host_key(hostname), ()))
    kept = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k in allowed]
    # sorted() is stable, so values of a repeated key stay in order
    kept.sort(key=lambda kv: kv[0])

    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(kept), ""))


def fingerprint(canonical_url: str) -> str:
    """First 12 hex digits of SHA-256 over the canonical URL."""
    return hashlib.sha256(canonical_url.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def simple_url_match(url: str, patterns: Iterable[str]) -> bool:
    """Glob-match ``host/path`` patterns against a URL without its scheme and www."""
    for prefix in ("https://", "http://"):
        if url.startswith(prefix):
            url = url[len(prefix):]
            break
    if url.startswith("www."):
        url = url[len("www."):]
    return any(fnmatch.fnmatchcase(url, p) for p in patterns)


def url_cat(base: str, name: str) -> str:
    """Join with exactly one slash."""
    return base.rstrip("/") + "/" + name.lstrip("/")
