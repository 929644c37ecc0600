"""
Base interface and helpers for storage destinations.
[CA][IV]
"""

from __future__ import annotations

import abc
from typing import Protocol, runtime_checkable

from ...exceptions import DestinationError


@runtime_checkable
class Destination(Protocol):
    async def upload(self, name: str, data: bytes) -> None:
        """Store ``data`` under ``name``, overwriting any existing object."""
        ...

    async def download(self, name: str) -> bytes:
        """Return the object's bytes, or raise ``ObjectNotFound``."""
        ...

    async def close(self) -> None:
        ...

    def describe(self) -> str:
        ...


class AbstractDestination(abc.ABC):
    """Shared plumbing: every variant checks names before touching storage."""

    async def upload(self, name: str, data: bytes) -> None:
        validate_simple_filename(name)
        await self._upload(name, data)

    async def download(self, name: str) -> bytes:
        validate_simple_filename(name)
        return await self._download(name)

    async def close(self) -> None:
        pass

    def __str__(self) -> str:
        return self.describe()

    @abc.abstractmethod
    async def _upload(self, name: str, data: bytes) -> None:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    async def _download(self, name: str) -> bytes:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def describe(self) -> str:  # pragma: no cover
        raise NotImplementedError


def validate_simple_filename(name: str) -> None:
    """Reject anything but a bare file name."""
    if not name or name in (".", ".."):
        raise DestinationError(f"filename {name!r} must not be empty or a dot name")
    if "/" in name or "\\" in name or "\x00" in name:
        raise DestinationError(f"filename {name!r} must not contain path separators")
