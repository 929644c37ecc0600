"""
Embed-wait synchronizer. [RM][REH]

Discord usually attaches a link's embed a moment after the message is
created, via a message update. The reply task waits for that update for a
bounded time so the reply can quote the embed.
"""

from __future__ import annotations

import asyncio
import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional, Sequence, Set

import discord

from ..utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_EMBED_WAIT_S = 3.0


class EmbedWaiter:
    """Per-message-id rendezvous between the reply task and update events."""

    def __init__(self, timeout: float = DEFAULT_EMBED_WAIT_S):
        self.timeout = timeout
        self._pending: Dict[int, Set[asyncio.Future]] = {}
        self._lock = threading.Lock()

    @asynccontextmanager
    async def _registered(self, message_id: int) -> AsyncIterator[asyncio.Future]:
        fut = asyncio.get_running_loop().create_future()
        with self._lock:
            self._pending.setdefault(message_id, set()).add(fut)
        try:
            yield fut
        finally:
            with self._lock:
                waiters = self._pending.get(message_id)
                if waiters is not None:
                    waiters.discard(fut)
                    if not waiters:
                        del self._pending[message_id]

    async def wait_for_embed(self, message: discord.Message) -> Optional[discord.Embed]:
        """First embed of ``message``, waiting up to ``timeout`` for one to arrive.

        Returns None when no embed shows up in time.
        """
        if message.embeds:
            return message.embeds[0]

        async with self._registered(message.id) as fut:
            try:
                return await asyncio.wait_for(fut, timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.debug(
                    f"⌛ No embed for message {message.id} within {self.timeout}s",
                    extra={"subsys": "embed_wait", "event": "embed.timeout", "msg_id": message.id},
                )
                return None

    def deliver(self, message_id: int, embeds: Sequence[discord.Embed]) -> bool:
        """Resolve waiters for ``message_id`` with the first embed, if any.

        Updates without embeds are ignored. Returns True if a waiter was resolved.
        """
        if not embeds:
            return False
        with self._lock:
            waiters = list(self._pending.get(message_id, ()))

        resolved = False
        for fut in waiters:
            if not fut.done():
                fut.set_result(embeds[0])
                resolved = True
        return resolved

    def pending_count(self, message_id: Optional[int] = None) -> int:
        with self._lock:
            if message_id is not None:
                return len(self._pending.get(message_id, ()))
            return sum(len(w) for w in self._pending.values())
