"""
Custom exceptions for the preview bot, providing a structured error hierarchy.
"""

from typing import List, Optional


class BotBaseException(Exception):
    """Base exception for all custom exceptions in this bot."""

    pass


class ConfigurationError(BotBaseException):
    """Raised for errors in bot configuration, like missing keys or invalid values."""

    pass


class ReuploadError(BotBaseException):
    """Base class for every failure of the reupload pipeline."""

    pass


class CanonicalizationError(ReuploadError):
    """Raised when a source URL is not a syntactically valid URL."""

    pass


class NoExtractorMatched(ReuploadError):
    """Raised when no configured extractor claims support for a URL."""

    def __init__(self, url: str):
        super().__init__(f"no extractor matching: {url}")
        self.url = url


class ExtractorError(ReuploadError):
    """Raised by a single extractor when it cannot resolve a URL."""

    pass


class CobaltError(ExtractorError):
    """Error reported by a cobalt instance (status=error)."""

    def __init__(self, code: str):
        super().__init__(f"cobalt error: {code}")
        self.code = code


class ExtractionFailed(ReuploadError):
    """Raised when every matching extractor failed. Carries each cause."""

    def __init__(self, url: str, errors: List[Exception]):
        causes = "; ".join(str(e) for e in errors)
        super().__init__(f"extracting media: {url}: {causes}")
        self.url = url
        self.errors = list(errors)


class TransferError(ReuploadError):
    """Raised when a remote asset could not be fetched or stored."""

    pass


class TransferRejected(TransferError):
    """Raised when a fetched asset violates the size or type policy."""

    pass


class MediaTooLarge(TransferRejected):
    """Raised when a remote asset exceeds the maximum media size."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"remote media is too large: {size} bytes (limit {limit})")
        self.size = size
        self.limit = limit


class UnsupportedMediaType(TransferRejected):
    """Raised when the sniffed content type is outside the allow-list."""

    def __init__(self, content_type: str):
        super().__init__(f"expecting allowed content type: {content_type}")
        self.content_type = content_type


class ManifestNotFound(ReuploadError):
    """Cache miss signal. Handled inside the reuploader, never surfaced."""

    pass


class ManifestCorrupt(ReuploadError):
    """Raised when a manifest exists but cannot be parsed."""

    pass


class DestinationError(ReuploadError):
    """Raised for upload/download/storage-layer failures."""

    pass


class ObjectNotFound(DestinationError):
    """Raised by a destination when the requested object does not exist."""

    def __init__(self, name: str, detail: Optional[str] = None):
        super().__init__(f"object not found: {name}" + (f" ({detail})" if detail else ""))
        self.name = name
