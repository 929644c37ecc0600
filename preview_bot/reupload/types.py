"""Value types flowing through the reupload pipeline."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..exceptions import ManifestCorrupt
from .canonical import canonicalize, fingerprint

_FRACTION = re.compile(r"\.(\d+)")


def _parse_timestamp(raw: str) -> datetime:
    """RFC 3339 with any fractional precision; extra digits beyond microseconds are dropped."""
    # fromisoformat before 3.11 takes neither a trailing Z nor 9 fractional digits
    text = raw.strip().replace("Z", "+00:00").replace("z", "+00:00")
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class MediaReference:
    """A source URL together with its canonical form and fingerprint."""

    source_url: str
    canonical_url: str
    fingerprint: str

    @classmethod
    def from_url(cls, raw_url: str) -> "MediaReference":
        canonical_url = canonicalize(raw_url)
        return cls(
            source_url=raw_url,
            canonical_url=canonical_url,
            fingerprint=fingerprint(canonical_url),
        )


@dataclass(frozen=True)
class RemoteAsset:
    """A direct media URL returned by an extractor.

    ``index`` is the 1-based position in a multi-asset result and ``None``
    when the extractor returned a single URL.
    """

    url: str
    index: Optional[int] = None

    def base_name(self, fp: str) -> str:
        return fp if self.index is None else f"{fp}-{self.index}"


@dataclass(frozen=True)
class StoredFile:
    """One media file as written to a destination."""

    name: str
    content_type: str
    data: bytes = field(repr=False)


@dataclass
class Manifest:
    """Record of a completed reupload, stored next to the media as ``<fp>.json``."""

    created_at: datetime
    source_url: str
    files: List[str]

    @classmethod
    def new(cls, source_url: str, files: List[str]) -> "Manifest":
        return cls(created_at=datetime.now(timezone.utc), source_url=source_url, files=list(files))

    def to_dict(self) -> Dict[str, Any]:
        created = self.created_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
        return {"created_at": created, "source_url": self.source_url, "files": list(self.files)}

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), indent=2).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes) -> "Manifest":
        try:
            obj = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as e:
            raise ManifestCorrupt(f"unmarshaling manifest: {e}") from e

        if not isinstance(obj, dict):
            raise ManifestCorrupt("unmarshaling manifest: expected an object")

        created_raw = obj.get("created_at")
        source_url = obj.get("source_url")
        files = obj.get("files")
        if not isinstance(created_raw, str) or not isinstance(source_url, str):
            raise ManifestCorrupt("unmarshaling manifest: missing created_at or source_url")
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise ManifestCorrupt("unmarshaling manifest: files must be a list of names")

        try:
            created_at = _parse_timestamp(created_raw)
        except ValueError as e:
            raise ManifestCorrupt(f"unmarshaling manifest: bad created_at: {e}") from e
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return cls(created_at=created_at, source_url=source_url, files=files)
