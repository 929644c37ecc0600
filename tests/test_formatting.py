"""
URL finding and reply rendering.
"""

import discord

from preview_bot.core.formatting import (
    build_reply_content,
    find_url,
    format_embed_as_text,
    prevent_url_embeds,
)


class TestFindUrl:
    def test_first_https_link(self):
        content = "lol look https://x.com/a/status/1 and https://bsky.app/profile/b/post/c"
        assert find_url(content) == "https://x.com/a/status/1"

    def test_plain_http_and_empty_ignored(self):
        assert find_url("http://x.com/a/status/1") is None
        assert find_url("") is None
        assert find_url(None) is None

    def test_link_ends_at_whitespace(self):
        assert find_url("https://x.com/a/status/1\nnice") == "https://x.com/a/status/1"


class TestFormatEmbed:
    def test_title_and_first_description_line(self):
        embed = discord.Embed(title="Someone (@someone)", description="first line\nsecond line")
        assert format_embed_as_text(embed) == "**Someone (@someone)** first line"

    def test_author_fallback(self):
        embed = discord.Embed(description="hi")
        embed.set_author(name="Author Name")
        assert format_embed_as_text(embed) == "**Author Name** hi"

    def test_provider_fallback(self):
        embed = discord.Embed.from_dict({"provider": {"name": "TikTok"}})
        assert format_embed_as_text(embed) == "**TikTok**"

    def test_description_only(self):
        assert format_embed_as_text(discord.Embed(description="just text")) == "just text"

    def test_urls_wrapped(self):
        embed = discord.Embed(title="T", description="see https://t.co/abc and http://x.y/z")
        assert format_embed_as_text(embed) == "**T** see <https://t.co/abc> and <http://x.y/z>"

    def test_none_and_empty(self):
        assert format_embed_as_text(None) == ""
        assert format_embed_as_text(discord.Embed()) == ""


def test_prevent_url_embeds_leaves_text_alone():
    assert prevent_url_embeds("no links here") == "no links here"


class TestReplyContent:
    def test_links_only(self):
        content = build_reply_content(None, ["https://m/a.mp4", "https://m/b.png"])
        assert content == "[.](https://m/a.mp4)[.](https://m/b.png)"

    def test_embed_text_then_links(self):
        embed = discord.Embed(title="Title", description="desc")
        content = build_reply_content(embed, ["https://m/a.mp4"])
        assert content == "**Title** desc\n[.](https://m/a.mp4)"
