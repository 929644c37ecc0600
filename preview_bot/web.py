"""
Diagnostic test page: paste a link, see what the bot would reupload.

Served with aiohttp at TEST_PAGE_ADDR when configured.
"""

from __future__ import annotations

import html
from typing import List, Optional

from aiohttp import web

from .exceptions import ConfigurationError, ReuploadError
from .reupload.reuploader import Reuploader
from .utils.logging import get_logger

logger = get_logger(__name__)

REUPLOADER_KEY = web.AppKey("reuploader", Reuploader)

PAGE_HEAD = """<!doctype html>
<html lang="en">
<head>
<title>Discord Video Preview</title>
<meta charset="utf-8">
<link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/water.css@2/out/water.css">
</head>
<body>
<h1>Discord Video Preview Tester</h1>
<form method="POST">
<label for="input">Video URL</label>
<input type="url" id="input" name="input" placeholder="https://www.tiktok.com/@example/video/..." value="{value}" style="width: 100%">
<button type="submit">Test Reupload</button>
</form>
"""

PAGE_TAIL = "</body>\n</html>\n"


def _render_link(url: str) -> str:
    u = html.escape(url, quote=True)
    out = f'<p><a href="{u}" target="_blank">{u}</a></p>\n'
    lower = url.lower()
    if lower.endswith(".mp4"):
        out += f'<video controls width="400"><source src="{u}" type="video/mp4"></video>\n'
    elif lower.endswith((".jpg", ".jpeg", ".png", ".gif")):
        out += f'<img src="{u}" alt="Media" style="max-width: 400px; height: auto;">\n'
    return out


def render_page(value: str = "", urls: Optional[List[str]] = None, error: Optional[str] = None) -> str:
    body = PAGE_HEAD.format(value=html.escape(value, quote=True))
    if error:
        body += f"<h2>Error</h2>\n<pre><code>{html.escape(error)}</code></pre>\n"
    if urls:
        body += "<h2>Result</h2>\n" + "".join(_render_link(u) for u in urls)
    return body + PAGE_TAIL


async def handle_index(request: web.Request) -> web.Response:
    return web.Response(text=render_page(), content_type="text/html")


async def handle_reupload(request: web.Request) -> web.Response:
    form = await request.post()
    value = str(form.get("input", "")).strip()
    reuploader = request.app[REUPLOADER_KEY]
    try:
        urls = await reuploader.reupload(value)
    except ReuploadError as e:
        logger.info(
            f"Test page reupload failed for {value}: {e}",
            extra={"subsys": "web", "event": "test_page.error"},
        )
        return web.Response(text=render_page(value, error=str(e)), content_type="text/html")
    return web.Response(text=render_page(value, urls=urls), content_type="text/html")


def build_test_app(reuploader: Reuploader) -> web.Application:
    app = web.Application()
    app[REUPLOADER_KEY] = reuploader
    app.router.add_get("/", handle_index)
    app.router.add_post("/", handle_reupload)
    return app


async def start_test_page(reuploader: Reuploader, addr: str) -> web.AppRunner:
    """Serve the test page on ``host:port``. Caller owns ``runner.cleanup()``."""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigurationError(f"TEST_PAGE_ADDR must be host:port, got {addr!r}")

    runner = web.AppRunner(build_test_app(reuploader))
    await runner.setup()
    site = web.TCPSite(runner, host or "0.0.0.0", int(port))
    await site.start()
    logger.info(f"🧪 Test page at http://{addr}/", extra={"subsys": "web"})
    return runner
