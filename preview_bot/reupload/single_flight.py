"""
Single-flight coalescing of concurrent work per key. [PA][DRY]

Concurrent callers asking for the same key share one in-flight task and all
receive its result or its exception. The entry is dropped as soon as the
task finishes, so a later call starts fresh work.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Generic, Tuple, TypeVar

from ..utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class _Flight(Generic[T]):
    task: "asyncio.Task[T]"
    waiters: int = field(default=0)


class SingleFlightGroup:
    """Manages in-flight operations to prevent duplication. [PA][DRY]"""

    def __init__(self):
        self.in_flight: Dict[str, _Flight] = {}
        self.joined_total = 0

    def _forget(self, key: str, task: asyncio.Task) -> None:
        flight = self.in_flight.get(key)
        if flight is not None and flight.task is task:
            del self.in_flight[key]

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> Tuple[T, bool]:
        """Execute ``fn`` with single-flight semantics.

        Returns: (result, was_shared) where was_shared=True if this call
        joined an operation another caller had already started.

        Cancelling a caller only cancels the shared task when no other
        caller is still waiting on it.
        """
        flight = self.in_flight.get(key)
        shared = flight is not None
        if flight is None:
            task = asyncio.ensure_future(fn())
            flight = _Flight(task=task)
            self.in_flight[key] = flight
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            self.joined_total += 1
            logger.debug(
                f"🔗 Joined in-flight operation for {key}",
                extra={"subsys": "reupload", "event": "single_flight.join", "fingerprint": key},
            )

        flight.waiters += 1
        try:
            result = await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            flight.waiters -= 1
            if flight.waiters == 0 and not flight.task.done():
                flight.task.cancel()
            raise
        except BaseException:
            flight.waiters -= 1
            raise
        flight.waiters -= 1
        return result, shared

    def pending(self) -> int:
        return len(self.in_flight)
