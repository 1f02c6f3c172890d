"""Async HTTP client for ASNINFO.

Provides :class:`AsyncHTTPClient`, an aiohttp wrapper with connection
pooling, optional retry/backoff, and transparent gzip/bz2 decompression of
downloaded dataset files.
"""

from __future__ import annotations

import asyncio
import bz2
import gzip
import json
from types import TracebackType
from typing import Any, Dict, Optional, Type

import aiohttp
from aiohttp import ClientSession, ClientTimeout, TCPConnector

from asninfo import __version__
from asninfo.utils.logger import get_logger

logger = get_logger(__name__)

_DEFAULT_USER_AGENT = f"asninfo/{__version__}"


class HTTPStatusError(aiohttp.ClientError):
    """Raised when a download answers with a non-2xx status."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"GET {url} returned HTTP {status}")
        self.url = url
        self.status = status


class AsyncHTTPClient:
    """Async HTTP client with connection pooling and optional retries.

    Usage::

        async with AsyncHTTPClient(timeout=60) as client:
            text = await client.get_text("https://ftp.ripe.net/ripe/asnames/asn.txt")
    """

    def __init__(
        self,
        timeout: int = 120,
        max_connections: int = 10,
        retries: int = 3,
        retry_delay: float = 1.0,
        user_agent: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """Initialise the client (does *not* open a session yet).

        Args:
            timeout: Request timeout in seconds.
            max_connections: Maximum simultaneous TCP connections.
            retries: Number of retry attempts on transient failures.
            retry_delay: Base delay between retries (doubles each attempt).
            user_agent: ``User-Agent`` header value.
            headers: Additional default headers sent with every request.
        """
        self._timeout = timeout
        self._max_connections = max_connections
        self._retries = retries
        self._retry_delay = retry_delay
        self._user_agent = user_agent or _DEFAULT_USER_AGENT
        self._default_headers: Dict[str, str] = headers or {}
        self._session: Optional[ClientSession] = None

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> "AsyncHTTPClient":
        await self._create_session()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def _create_session(self) -> None:
        """Create the underlying :class:`aiohttp.ClientSession`."""
        connector = TCPConnector(limit=self._max_connections, ttl_dns_cache=300)
        timeout = ClientTimeout(total=self._timeout)
        headers = {"User-Agent": self._user_agent, **self._default_headers}
        self._session = ClientSession(
            connector=connector,
            timeout=timeout,
            headers=headers,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session and release connections."""
        if self._session and not self._session.closed:
            await self._session.close()

    # ------------------------------------------------------------------
    # Public HTTP methods
    # ------------------------------------------------------------------

    async def get(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Perform an HTTP GET request.

        Args:
            url: Target URL.
            **kwargs: Extra arguments forwarded to :meth:`_request`.

        Returns:
            Response dict with ``status``, ``headers``, ``content``, ``url``.
        """
        return await self._request("GET", url, **kwargs)

    async def get_bytes(self, url: str, **kwargs: Any) -> bytes:
        """Download *url* and return its body, decompressed by file extension.

        Raises:
            HTTPStatusError: If the server answers with a non-2xx status.
            aiohttp.ClientError: After all retries are exhausted.
        """
        resp = await self.get(url, **kwargs)
        if not 200 <= resp["status"] < 300:
            raise HTTPStatusError(url, resp["status"])
        return decompress(url, resp["content"])

    async def get_text(self, url: str, **kwargs: Any) -> str:
        """Download *url* and decode it as UTF-8 (invalid bytes replaced)."""
        content = await self.get_bytes(url, **kwargs)
        return content.decode("utf-8", errors="replace")

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        """Download *url* and parse it as JSON."""
        return json.loads(await self.get_text(url, **kwargs))

    # ------------------------------------------------------------------
    # Core request logic
    # ------------------------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Execute an HTTP request with retry/backoff logic.

        Args:
            method: HTTP method string.
            url: Target URL.
            **kwargs: Forwarded to :meth:`aiohttp.ClientSession.request`.

        Returns:
            Response dict.

        Raises:
            aiohttp.ClientError: After all retries are exhausted.
        """
        if self._session is None:
            await self._create_session()

        last_exc: Optional[Exception] = None
        for attempt in range(self._retries + 1):
            try:
                assert self._session is not None
                async with self._session.request(method, url, **kwargs) as resp:
                    content = b"" if method.upper() == "HEAD" else await resp.read()
                    return {
                        "status": resp.status,
                        "headers": dict(resp.headers),
                        "content": content,
                        "url": str(resp.url),
                    }
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                last_exc = exc
                if attempt < self._retries:
                    backoff = self._retry_delay * (2 ** attempt)
                    logger.debug(
                        "Request to %s failed (attempt %d/%d): %s, retrying in %.1fs",
                        url,
                        attempt + 1,
                        self._retries + 1,
                        exc,
                        backoff,
                    )
                    await asyncio.sleep(backoff)

        raise last_exc or aiohttp.ClientError(f"Request failed: {url}")


def decompress(url: str, content: bytes) -> bytes:
    """Decompress *content* when *url* ends in ``.gz`` or ``.bz2``."""
    path = url.split("?", 1)[0].lower()
    if path.endswith(".gz"):
        return gzip.decompress(content)
    if path.endswith(".bz2"):
        return bz2.decompress(content)
    return content
