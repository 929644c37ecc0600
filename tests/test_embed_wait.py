"""
Embed-wait synchronizer: immediate embeds, late delivery, timeouts, cleanup.
"""

import asyncio
import time
from types import SimpleNamespace

import discord
import pytest

from preview_bot.core.embed_wait import EmbedWaiter


def _message(message_id=1, embeds=None):
    return SimpleNamespace(id=message_id, embeds=embeds or [])


async def _until_pending(waiter, message_id):
    while waiter.pending_count(message_id) == 0:
        await asyncio.sleep(0)


class TestEmbedWaiter:
    @pytest.mark.asyncio
    async def test_existing_embed_returned_immediately(self):
        embed = discord.Embed(title="already here")
        waiter = EmbedWaiter(timeout=10)
        assert await waiter.wait_for_embed(_message(embeds=[embed])) is embed
        assert waiter.pending_count() == 0

    @pytest.mark.asyncio
    async def test_late_embed_delivered(self):
        waiter = EmbedWaiter(timeout=5)
        task = asyncio.create_task(waiter.wait_for_embed(_message(42)))
        await asyncio.wait_for(_until_pending(waiter, 42), 1)

        embed = discord.Embed(title="late")
        assert waiter.deliver(42, [embed, discord.Embed(title="second")])
        assert await task is embed
        assert waiter.pending_count() == 0

    @pytest.mark.asyncio
    async def test_timeout_returns_none_and_cleans_up(self):
        waiter = EmbedWaiter(timeout=0.2)
        loop = asyncio.get_running_loop()
        started = loop.time()
        assert await waiter.wait_for_embed(_message(7)) is None
        elapsed = loop.time() - started
        # the loop may fire timers up to one clock tick early
        assert elapsed >= waiter.timeout - time.get_clock_info("monotonic").resolution
        assert waiter.pending_count() == 0
        # a late update finds nobody waiting
        assert not waiter.deliver(7, [discord.Embed(title="too late")])

    @pytest.mark.asyncio
    async def test_updates_for_other_messages_or_without_embeds_ignored(self):
        waiter = EmbedWaiter(timeout=0.1)
        task = asyncio.create_task(waiter.wait_for_embed(_message(1)))
        await asyncio.wait_for(_until_pending(waiter, 1), 1)

        assert not waiter.deliver(2, [discord.Embed(title="wrong message")])
        assert not waiter.deliver(1, [])
        assert await task is None

    @pytest.mark.asyncio
    async def test_multiple_waiters_same_message(self):
        waiter = EmbedWaiter(timeout=5)
        tasks = [asyncio.create_task(waiter.wait_for_embed(_message(9))) for _ in range(2)]
        while waiter.pending_count(9) < 2:
            await asyncio.sleep(0)

        embed = discord.Embed(title="shared")
        assert waiter.deliver(9, [embed])
        assert await asyncio.gather(*tasks) == [embed, embed]
        assert waiter.pending_count() == 0

    @pytest.mark.asyncio
    async def test_cancel_deregisters(self):
        waiter = EmbedWaiter(timeout=5)
        task = asyncio.create_task(waiter.wait_for_embed(_message(3)))
        await asyncio.wait_for(_until_pending(waiter, 3), 1)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert waiter.pending_count() == 0
