"""
SingleFlightGroup coalescing and cancellation semantics.
"""

import asyncio

import pytest

from preview_bot.reupload.single_flight import SingleFlightGroup


@pytest.mark.asyncio
async def test_joined_callers_get_shared_flag():
    group = SingleFlightGroup()
    gate = asyncio.Event()
    runs = 0

    async def work():
        nonlocal runs
        runs += 1
        await gate.wait()
        return "done"

    first = asyncio.create_task(group.do("k", work))
    second = asyncio.create_task(group.do("k", work))
    await asyncio.sleep(0)
    assert group.pending() == 1
    gate.set()

    assert await first == ("done", False)
    assert await second == ("done", True)
    assert runs == 1
    assert group.pending() == 0
    assert group.joined_total == 1


@pytest.mark.asyncio
async def test_distinct_keys_run_separately():
    group = SingleFlightGroup()

    async def work(value):
        await asyncio.sleep(0)
        return value

    results = await asyncio.gather(group.do("a", lambda: work(1)), group.do("b", lambda: work(2)))
    assert results == [(1, False), (2, False)]


@pytest.mark.asyncio
async def test_last_waiter_cancel_cancels_work():
    group = SingleFlightGroup()
    cancelled = asyncio.Event()

    async def work():
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    caller = asyncio.create_task(group.do("k", work))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller

    await asyncio.wait_for(cancelled.wait(), timeout=1.0)
    await asyncio.sleep(0)
    assert group.pending() == 0


@pytest.mark.asyncio
async def test_exception_reaches_every_waiter():
    group = SingleFlightGroup()
    gate = asyncio.Event()

    async def work():
        await gate.wait()
        raise ValueError("boom")

    tasks = [asyncio.create_task(group.do("k", work)) for _ in range(3)]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    assert all(isinstance(r, ValueError) for r in results)
    assert group.pending() == 0
