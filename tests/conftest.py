"""
Shared fixtures for the vyltrex test suite.
"""
import hashlib
import zipfile
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from vyltrex_cli.models.config import LauncherConfig
from vyltrex_cli.storage.catalog import Catalog
from vyltrex_cli.storage.content_store import InstallationStore


# ── Helpers ───────────────────────────────────────────────────────────────────

def sha256_of(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def build_zip(path: Path, entries: dict) -> Path:
    """Writes a ZIP file. A value of None creates a directory entry."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            if data is None:
                zf.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
            else:
                zf.writestr(name, data)
    return path


class FakeFetcher:
    """Serves archives from local files instead of the network."""

    def __init__(self, archives: dict | None = None, fail_with: Exception | None = None):
        self.archives = archives or {}
        self.fail_with = fail_with
        self.calls: list[str] = []
        self.closed = False

    async def download(self, url, destination_path, on_progress=None):
        self.calls.append(url)
        destination_path.parent.mkdir(parents=True, exist_ok=True)
        if self.fail_with is not None:
            destination_path.write_bytes(b"partial")
            raise self.fail_with
        data = Path(self.archives[url]).read_bytes()
        destination_path.write_bytes(data)
        if on_progress:
            on_progress(50.0)
            on_progress(100.0)
        return len(data)

    async def close(self):
        self.closed = True


# ── Directory fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def config(tmp_path):
    """A configuration rooted in a temporary data directory."""
    return LauncherConfig(data_dir=tmp_path / "data")


@pytest.fixture
def store(config):
    return InstallationStore(config.state_file)


@pytest.fixture
def make_zip(tmp_path):
    """Factory building ZIP archives under a scratch directory."""
    def _make(entries: dict, name: str = "package.zip") -> Path:
        return build_zip(tmp_path / "archives" / name, entries)
    return _make


@pytest.fixture
def make_catalog():
    """Factory building a catalog from entries in the catalog file format."""
    def _make(*entries: dict) -> Catalog:
        return Catalog.from_entries(list(entries))
    return _make


# ── HTTP fixtures ─────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def archive_server():
    """
    A local HTTP server. Files put into `server.files` are served under
    /files/<name>; /redirect/<name> redirects there.
    """
    files: dict[str, bytes] = {}
    user_agents: list[str] = []

    async def serve_file(request):
        user_agents.append(request.headers.get("User-Agent", ""))
        name = request.match_info["name"]
        if name not in files:
            raise web.HTTPNotFound()
        return web.Response(body=files[name], content_type="application/zip")

    async def redirect(request):
        raise web.HTTPFound(f"/files/{request.match_info['name']}")

    async def hop(request):
        remaining = int(request.match_info["count"])
        if remaining == 0:
            raise web.HTTPFound("/files/game.zip")
        raise web.HTTPFound(f"/hop/{remaining - 1}")

    async def redirect_loop(request):
        raise web.HTTPFound("/loop")

    async def chunked(request):
        response = web.StreamResponse()
        response.enable_chunked_encoding()
        await response.prepare(request)
        data = files[request.match_info["name"]]
        for i in range(0, len(data), 65536):
            await response.write(data[i : i + 65536])
        await response.write_eof()
        return response

    async def truncated(request):
        response = web.StreamResponse(headers={"Content-Length": "1000"})
        await response.prepare(request)
        await response.write(b"x" * 100)
        request.transport.close()
        return response

    app = web.Application()
    app.router.add_get("/files/{name}", serve_file)
    app.router.add_get("/redirect/{name}", redirect)
    app.router.add_get("/hop/{count}", hop)
    app.router.add_get("/loop", redirect_loop)
    app.router.add_get("/chunked/{name}", chunked)
    app.router.add_get("/truncated", truncated)

    server = TestServer(app)
    await server.start_server()
    server.files = files
    server.user_agents = user_agents
    yield server
    await server.close()
