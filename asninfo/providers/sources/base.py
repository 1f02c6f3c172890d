"""Base class for all upstream dataset sources.

Every source must inherit from :class:`DatasetSource` and implement
``def parse(self, payload: Any) -> Dict[int, Any]``. Parsing runs in a worker
thread so large downloads never stall the event loop serving lookups.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict

from asninfo.core.errors import FetchError
from asninfo.utils.http_client import AsyncHTTPClient
from asninfo.utils.logger import get_logger


class DatasetSource(ABC):
    """Abstract base class for a single upstream dataset.

    Attributes:
        name: Human-readable source identifier (e.g. ``"asnames"``).
        description: One-line description of what this source provides.
        required: Whether the dataset cannot be built without this source.
    """

    name: str = "unknown"
    description: str = ""
    required: bool = False

    def __init__(self, http: AsyncHTTPClient, url: str) -> None:
        """Initialise the source.

        Args:
            http: Shared HTTP client.
            url: Location of the upstream dataset.
        """
        self._http = http
        self.url = url
        self.logger = get_logger(f"source.{self.name}")

    async def download(self) -> Any:
        """Fetch the raw payload. Defaults to the body of ``self.url`` as text."""
        return await self._http.get_text(self.url)

    @abstractmethod
    def parse(self, payload: Any) -> Dict[int, Any]:
        """Parse a downloaded payload into a mapping keyed by ASN.

        Args:
            payload: Whatever :meth:`download` returned.

        Returns:
            Mapping of ASN to the source-specific record.
        """

    async def fetch(self) -> Dict[int, Any]:
        """Download and parse the dataset.

        Returns:
            Mapping of ASN to the source-specific record.

        Raises:
            FetchError: If the download or parsing fails, or a required
                source yields no records.
        """
        self.logger.info("Loading %s from %s", self.name, self.url)
        try:
            payload = await self.download()
            result = await asyncio.to_thread(self.parse, payload)
        except FetchError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise FetchError(self.name, str(exc) or type(exc).__name__) from exc
        if self.required and not result:
            raise FetchError(self.name, "no records parsed")
        self.logger.info("Loaded %d %s entries", len(result), self.name)
        return result

    def __repr__(self) -> str:
        return f"<DatasetSource {self.name}>"
