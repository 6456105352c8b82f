"""
Handles the low-level streaming of remote archives over HTTP(S) to local files,
following redirects and reporting byte-level progress.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

import aiofiles
import aiohttp

from vyltrex_cli.exceptions import NetworkError
from vyltrex_cli.models.config import DEFAULT_CHUNK_SIZE, DEFAULT_USER_AGENT
from vyltrex_cli.utils.formatting import format_size
from vyltrex_cli.utils.path import create_dir

log = logging.getLogger(__name__)


class Fetcher:
    """
    Streams a URL into a file with a bounded number of redirects.

    No request timeout is applied: large archives on slow links are expected
    to take as long as they take. The fetcher owns its `aiohttp.ClientSession`
    unless one is passed in; use it as an async context manager or call
    `close()` when done.
    """

    def __init__(
        self,
        max_redirects: int = 10,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        user_agent: str = DEFAULT_USER_AGENT,
        session: aiohttp.ClientSession | None = None,
    ):
        self.max_redirects = max_redirects
        self.chunk_size = chunk_size
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Gets or lazily creates the session used for downloads."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                connector = aiohttp.TCPConnector(
                    limit=16,
                    ttl_dns_cache=600,  # 10 minutes
                    enable_cleanup_closed=True,
                )
                self._session = aiohttp.ClientSession(
                    connector=connector,
                    timeout=aiohttp.ClientTimeout(total=None),
                    headers={
                        "User-Agent": self.user_agent,
                        # Keeps Content-Length equal to the bytes written to disk
                        "Accept-Encoding": "identity",
                    },
                )
                self._owns_session = True
                log.debug("Created download session.")
            return self._session

    async def close(self) -> None:
        """Closes the session if this fetcher created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            log.debug("Download session closed.")
        self._session = None

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def download(
        self,
        url: str,
        destination_path: Path,
        on_progress: Callable[[float], None] | None = None,
    ) -> int:
        """
        Downloads `url` to `destination_path`, overwriting it.

        Progress is reported as a percentage only when the server announces a
        Content-Length; otherwise `on_progress` is never called.

        Returns:
            The number of bytes written.

        Raises:
            NetworkError: On connection failures, too many redirects, non-2xx
            responses, or a stream that ends before the announced length. A
            partially written file may remain at `destination_path`.
        """
        create_dir(destination_path.parent)
        session = await self._get_session()
        bytes_received = 0
        total_size: int | None = None

        try:
            # aiohttp raises on the redirect that reaches the limit, so allow one more
            async with session.get(
                url, allow_redirects=True, max_redirects=self.max_redirects + 1
            ) as response:
                response.raise_for_status()
                if not 200 <= response.status < 300:
                    raise NetworkError(
                        f"Unexpected HTTP {response.status} response for '{url}'."
                    )
                if response.history:
                    log.debug(
                        f"Followed {len(response.history)} redirect(s) to "
                        f"'{response.url}'."
                    )

                total_size = response.content_length
                if not total_size:
                    total_size = None
                    log.debug(f"No Content-Length for '{url}', progress unavailable.")

                async with aiofiles.open(destination_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        await f.write(chunk)
                        bytes_received += len(chunk)
                        if total_size and on_progress:
                            on_progress(min(bytes_received / total_size * 100, 100.0))
        except aiohttp.TooManyRedirects as e:
            raise NetworkError(
                f"Exceeded {self.max_redirects} redirects while fetching '{url}'."
            ) from e
        except aiohttp.ClientResponseError as e:
            raise NetworkError(
                f"Server returned HTTP {e.status} for '{url}': {e.message}"
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Download of '{url}' failed: {e}") from e

        if total_size is not None and bytes_received < total_size:
            raise NetworkError(
                f"Download of '{url}' was interrupted after "
                f"{format_size(bytes_received)} of {format_size(total_size)}."
            )

        log.debug(
            f"Downloaded {format_size(bytes_received)} to "
            f"'{destination_path.name}'."
        )
        return bytes_received
