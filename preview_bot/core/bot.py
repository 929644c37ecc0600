"""Core bot implementation: watches messages and replies with reuploaded media."""

from __future__ import annotations

import asyncio
import os
import threading
from typing import Any, Dict, List, Optional, Set

import discord
from discord.ext import commands

from ..exceptions import ReuploadError
from ..reupload.reuploader import Reuploader
from ..utils.logging import get_logger, message_context
from .embed_wait import DEFAULT_EMBED_WAIT_S, EmbedWaiter
from .formatting import build_reply_content, find_url

REPLY_MENTIONS = discord.AllowedMentions(
    everyone=False, users=False, roles=False, replied_user=True
)


class PreviewBot(commands.Bot):
    """Bot that answers social-media links with playable reuploads."""

    def __init__(
        self,
        *args,
        config: dict | None = None,
        reuploader: Optional[Reuploader] = None,
        embed_waiter: Optional[EmbedWaiter] = None,
        **kwargs,
    ):
        # Provide sensible defaults for tests if not supplied
        if "command_prefix" not in kwargs:
            kwargs["command_prefix"] = os.getenv("COMMAND_PREFIX", "!")
        if "intents" not in kwargs:
            kwargs["intents"] = discord.Intents.none()

        super().__init__(*args, **kwargs)
        self.config = config or {}
        self.logger = get_logger(__name__)
        self.reuploader = reuploader
        self.embed_waiter = embed_waiter or EmbedWaiter(
            float(self.config.get("PREVIEW_EMBED_WAIT_S", DEFAULT_EMBED_WAIT_S))
        )
        self.test_page = None
        self._reply_tasks: Set[asyncio.Task] = set()
        # channel id -> id of the newest message seen in it
        self._last_channel_message: Dict[int, int] = {}
        self._last_lock = threading.Lock()

    async def setup_hook(self) -> None:
        """Asynchronous setup phase for the bot."""
        addr = self.config.get("TEST_PAGE_ADDR")
        if addr and self.reuploader is not None:
            from ..web import start_test_page

            self.test_page = await start_test_page(self.reuploader, addr)

    async def on_ready(self):
        self.logger.info(
            f"🤖 Logged in as {self.user} (ID: {self.user.id})", extra={"subsys": "core"}
        )

    def note_last_message(self, channel_id: int, message_id: int) -> None:
        with self._last_lock:
            self._last_channel_message[channel_id] = message_id

    def posted_since(self, message: discord.Message) -> bool:
        """True if another message arrived in the channel after ``message``."""
        with self._last_lock:
            last = self._last_channel_message.get(message.channel.id)
        return last is not None and last != message.id

    async def on_message(self, message: discord.Message):
        self.note_last_message(message.channel.id, message.id)

        if self.user is not None and message.author.id == self.user.id:
            return

        url = find_url(message.content)
        if url is None or self.reuploader is None:
            return
        if not self.reuploader.is_supported(url):
            return

        task = asyncio.create_task(self.reply_to_message(message, url))
        self._reply_tasks.add(task)
        task.add_done_callback(self._reply_tasks.discard)

    async def on_raw_message_edit(self, payload: discord.RawMessageUpdateEvent):
        embeds_data: List[Dict[str, Any]] = payload.data.get("embeds") or []
        if not embeds_data:
            return
        embeds = [discord.Embed.from_dict(e) for e in embeds_data]
        self.embed_waiter.deliver(payload.message_id, embeds)

    async def reply_to_message(self, message: discord.Message, url: str) -> None:
        """Reupload ``url`` and answer ``message`` with the embed text and media links."""
        log_extra = {"subsys": "core", **message_context(message)}

        permalinks, embed = await asyncio.gather(
            self.reuploader.reupload(url),
            self.embed_waiter.wait_for_embed(message),
            return_exceptions=True,
        )

        for outcome in (permalinks, embed):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome

        if isinstance(permalinks, ReuploadError):
            self.logger.warning(
                f"⚠ Reupload failed for {url}: {permalinks}",
                extra={**log_extra, "event": "reupload.failed"},
            )
            return
        if isinstance(permalinks, BaseException):
            self.logger.error(
                f"✖ Unexpected error reuploading {url}: {permalinks}",
                exc_info=permalinks,
                extra={**log_extra, "event": "reupload.crashed"},
            )
            return

        if isinstance(embed, BaseException):
            self.logger.debug(
                f"Embed wait failed for message {message.id}: {embed}", extra=log_extra
            )
            embed = None

        if not permalinks:
            self.logger.info(
                f"No media stored for {url}, not replying",
                extra={**log_extra, "event": "reply.skipped"},
            )
            return

        content = build_reply_content(embed, permalinks)

        await self.hide_original_embed(message)
        reference = message if self.posted_since(message) else None
        await self.send_reply(message, content, reference)

    async def hide_original_embed(self, message: discord.Message) -> None:
        try:
            await message.edit(suppress=True)
        except discord.HTTPException as e:
            # needs Manage Messages
            self.logger.info(
                f"Could not hide embed on {message.id}: {e}",
                extra={"subsys": "core", "event": "embed.hide_failed", "msg_id": message.id},
            )

    async def send_reply(
        self,
        message: discord.Message,
        content: str,
        reference: Optional[discord.Message] = None,
    ) -> None:
        try:
            await message.channel.send(
                content, reference=reference, allowed_mentions=REPLY_MENTIONS
            )
        except discord.HTTPException as e:
            self.logger.error(
                f"✖ Channel send failed: {e}",
                extra={"subsys": "core", "event": "reply.send_failed", **message_context(message)},
            )

    async def close(self) -> None:
        """Clean up resources before shutdown."""
        self.logger.info("Bot is shutting down...", extra={"subsys": "core"})

        if self._reply_tasks:
            pending = list(self._reply_tasks)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if self.test_page is not None:
            await self.test_page.cleanup()
            self.test_page = None

        await super().close()
