"""
Embedded file server of the filesystem destination.
"""

import socket

import httpx
import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from preview_bot.reupload.destinations.fs import FSDestination, build_file_app


@pytest.fixture
def served_root(tmp_path, media):
    (tmp_path / "abc.mp4").write_bytes(media.mp4)
    (tmp_path / "abc-1.png").write_bytes(media.png)
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "hidden.png").write_bytes(media.png)
    return tmp_path


@pytest_asyncio.fixture
async def file_client(served_root):
    client = TestClient(TestServer(build_file_app(served_root)))
    await client.start_server()
    try:
        yield client
    finally:
        await client.close()


class TestFileServer:
    @pytest.mark.asyncio
    async def test_mp4_long_cache(self, file_client, media):
        resp = await file_client.get("/abc.mp4")
        assert resp.status == 200
        assert resp.headers["Content-Type"] == "video/mp4"
        assert resp.headers["Cache-Control"] == "public, max-age=31536000"
        assert await resp.read() == media.mp4

    @pytest.mark.asyncio
    async def test_other_files_short_cache(self, file_client):
        resp = await file_client.get("/abc-1.png")
        assert resp.status == 200
        assert resp.headers["Cache-Control"] == "public, max-age=3600"

    @pytest.mark.asyncio
    async def test_head_allowed(self, file_client):
        resp = await file_client.head("/abc.mp4")
        assert resp.status == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "OPTIONS"])
    async def test_other_methods_405(self, file_client, method):
        resp = await file_client.request(method, "/abc.mp4")
        assert resp.status == 405

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/", "/sub/", "/sub/hidden.png", "/missing.mp4"])
    async def test_no_listing_or_nested_paths(self, file_client, path):
        resp = await file_client.get(path)
        assert resp.status == 404


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.mark.asyncio
async def test_destination_starts_and_stops_server(tmp_path, media):
    port = _free_port()
    dest = await FSDestination.from_url(f"fs://{tmp_path}?server=127.0.0.1:{port}")
    try:
        await dest.upload("abc.gif", media.gif)
        async with httpx.AsyncClient() as client:
            resp = await client.get(f"http://127.0.0.1:{port}/abc.gif")
        assert resp.status_code == 200
        assert resp.content == media.gif
        assert f"server=127.0.0.1:{port}" in dest.describe()
    finally:
        await dest.close()

    async with httpx.AsyncClient() as client:
        with pytest.raises(httpx.ConnectError):
            await client.get(f"http://127.0.0.1:{port}/abc.gif")
