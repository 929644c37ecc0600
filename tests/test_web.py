"""
Diagnostic test page served with aiohttp.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from preview_bot.exceptions import ConfigurationError, NoExtractorMatched
from preview_bot.web import build_test_app, render_page, start_test_page


@pytest.fixture
def reuploader():
    reuploader = MagicMock()
    reuploader.reupload = AsyncMock(
        return_value=["https://media.example/abc.mp4", "https://media.example/abc-1.png"]
    )
    return reuploader


@pytest_asyncio.fixture
async def page_client(reuploader):
    client = TestClient(TestServer(build_test_app(reuploader)))
    await client.start_server()
    yield client
    await client.close()


@pytest.mark.asyncio
async def test_form_served(page_client):
    resp = await page_client.get("/")
    assert resp.status == 200
    assert resp.content_type == "text/html"
    body = await resp.text()
    assert '<form method="POST">' in body
    assert "<h2>Result</h2>" not in body


@pytest.mark.asyncio
async def test_reupload_renders_media(page_client, reuploader):
    resp = await page_client.post("/", data={"input": " https://x.com/a/status/1 "})
    assert resp.status == 200
    body = await resp.text()

    reuploader.reupload.assert_awaited_once_with("https://x.com/a/status/1")
    assert '<source src="https://media.example/abc.mp4" type="video/mp4">' in body
    assert '<img src="https://media.example/abc-1.png"' in body
    assert 'value="https://x.com/a/status/1"' in body


@pytest.mark.asyncio
async def test_reupload_error_rendered(page_client, reuploader):
    reuploader.reupload.side_effect = NoExtractorMatched("https://example.com/<b>")
    resp = await page_client.post("/", data={"input": "https://example.com/<b>"})
    assert resp.status == 200
    body = await resp.text()
    assert "<h2>Error</h2>" in body
    assert "no extractor matching: https://example.com/&lt;b&gt;" in body
    assert "<b>" not in body.split("</form>", 1)[1]


@pytest.mark.asyncio
async def test_other_paths_not_found(page_client):
    resp = await page_client.get("/elsewhere")
    assert resp.status == 404


def test_render_plain_link_for_unknown_extension():
    body = render_page(urls=["https://media.example/file.bin"])
    assert '<a href="https://media.example/file.bin"' in body
    assert "<video" not in body
    assert "<img" not in body


@pytest.mark.asyncio
async def test_bad_address_rejected(reuploader):
    with pytest.raises(ConfigurationError):
        await start_test_page(reuploader, "localhost")
