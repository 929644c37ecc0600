"""
Local filesystem destination with an optional embedded file server.

``fs:///srv/previews?server=0.0.0.0:8080`` stores files under /srv/previews
and serves them over HTTP so PREVIEW_PUBLIC_URL can point straight at it.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlsplit

import aiofiles
import aiofiles.os
from aiohttp import web

from ...exceptions import ConfigurationError, DestinationError, ObjectNotFound
from ...utils.logging import get_logger
from .base import AbstractDestination, validate_simple_filename

logger = get_logger(__name__)

LONG_CACHE = "public, max-age=31536000"
SHORT_CACHE = "public, max-age=3600"


def _parse_addr(addr: str) -> Tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigurationError(f"server address must be host:port, got {addr!r}")
    return host or "0.0.0.0", int(port)


def build_file_app(root: Path) -> web.Application:
    """aiohttp app serving the flat files under ``root``: GET/HEAD, no listings."""

    async def serve(request: web.Request) -> web.StreamResponse:
        if request.method not in ("GET", "HEAD"):
            raise web.HTTPMethodNotAllowed(request.method, ["GET", "HEAD"])

        path = request.path
        if path == "/" or path.endswith("/"):
            raise web.HTTPNotFound()

        name = path[1:]
        try:
            validate_simple_filename(name)
        except DestinationError:
            raise web.HTTPNotFound()

        file_path = root / name
        if not file_path.is_file():
            raise web.HTTPNotFound()

        if name.endswith(".mp4"):
            headers = {"Content-Type": "video/mp4", "Cache-Control": LONG_CACHE}
        else:
            headers = {"Cache-Control": SHORT_CACHE}
        return web.FileResponse(file_path, headers=headers)

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", serve)
    return app


class FSDestination(AbstractDestination):
    """Stores files in one directory on local disk."""

    def __init__(self, root: Path, server_addr: Optional[str] = None):
        self.root = Path(root)
        self.server_addr = server_addr
        self._runner: Optional[web.AppRunner] = None

    @classmethod
    async def from_url(cls, url: str, **_) -> "FSDestination":
        parts = urlsplit(url)
        path = parts.netloc + parts.path
        if not path:
            raise ConfigurationError(f"fs destination needs a path: {url}")
        server = (parse_qs(parts.query).get("server") or [None])[0]

        dest = cls(Path(path), server)
        try:
            dest.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"opening root {path}: {e}") from e
        if server:
            await dest.start_server()
        return dest

    async def start_server(self) -> None:
        if self._runner is not None or not self.server_addr:
            return
        host, port = _parse_addr(self.server_addr)
        runner = web.AppRunner(build_file_app(self.root))
        await runner.setup()
        site = web.TCPSite(runner, host, port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner
        logger.info(
            f"🗂️ File server listening on {host}:{port}",
            extra={"subsys": "destination", "event": "fs.server.start"},
        )

    async def close(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("🛑 File server stopped", extra={"subsys": "destination"})

    async def _upload(self, name: str, data: bytes) -> None:
        target = self.root / name
        # readers never see a half-written file
        tmp = self.root / f".{name}.{uuid.uuid4().hex}.tmp"
        try:
            async with aiofiles.open(tmp, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(tmp, target)
        except OSError as e:
            if tmp.exists():
                os.unlink(tmp)
            raise DestinationError(f"writing {name}: {e}") from e

    async def _download(self, name: str) -> bytes:
        try:
            async with aiofiles.open(self.root / name, "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise ObjectNotFound(name) from e
        except OSError as e:
            raise DestinationError(f"reading {name}: {e}") from e

    def describe(self) -> str:
        return f"filesystem destination at {self.root} server={self.server_addr or 'none'}"
