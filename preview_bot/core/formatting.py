"""Message parsing and reply rendering."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

import discord

URL_PATTERN = re.compile(r"https://\S+")
_ANY_URL_PATTERN = re.compile(r"https?://\S+")


def find_url(content: str) -> Optional[str]:
    """First https link in a message, or None."""
    match = URL_PATTERN.search(content or "")
    return match.group(0) if match else None


def prevent_url_embeds(text: str) -> str:
    """Wrap bare URLs in <...> so Discord does not unfurl them."""
    return _ANY_URL_PATTERN.sub(lambda m: f"<{m.group(0)}>", text)


def format_embed_as_text(embed: Optional[discord.Embed]) -> str:
    """One line: bold title (or author, or provider) then the description's first line."""
    if embed is None:
        return ""

    title = embed.title or ""
    if not title:
        author_name = getattr(embed.author, "name", None)
        provider_name = getattr(embed.provider, "name", None)
        title = author_name or provider_name or ""

    desc = prevent_url_embeds(embed.description or "").split("\n", 1)[0]

    if title and desc:
        return f"**{title}** {desc}"
    if title:
        return f"**{title}**"
    return desc


def build_reply_content(embed: Optional[discord.Embed], permalinks: Sequence[str]) -> str:
    """Embed text followed by one masked link per file, which Discord previews inline."""
    parts: List[str] = []
    text = format_embed_as_text(embed)
    if text:
        parts.append(text)
    parts.append("".join(f"[.]({link})" for link in permalinks))
    return "\n".join(parts)
