"""
Discord Preview Bot Package

Watches chat messages for links to social-media posts and reuploads the
linked media to durable storage, featuring:
- Pluggable extractors (cobalt, fastdl) resolving posts to direct media URLs
- Pluggable destinations (B2 object store, local filesystem, rclone WebDAV)
- Content-addressed manifest cache so every source URL is reuploaded once
- Replies that quote the platform embed alongside playable permalinks
"""

# Package metadata
__title__ = "Discord Preview Bot"
__version__ = "1.0.0"
__description__ = "Reuploads media from social-media links posted in Discord"
__license__ = "MIT"

# Avoid importing discord.py at package import time to keep tests lightweight
__all__ = []


def __getattr__(name: str):
    """Lazy loader for heavy symbols.

    Accessing preview_bot.PreviewBot imports it on demand, otherwise importing
    submodules like preview_bot.reupload.* won't pull the Discord runtime.
    """
    if name == "PreviewBot":
        from .core.bot import PreviewBot as _PreviewBot
        return _PreviewBot
    raise AttributeError(name)
