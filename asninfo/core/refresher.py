"""Periodic background refresh of the served dataset.

:class:`BackgroundRefresher` wakes up every ``interval`` seconds, asks the
provider adapter for a new snapshot, and commits it to the
:class:`~asninfo.core.store.SnapshotStore`. A failed refresh is logged and
the previous snapshot keeps being served; the loop itself never stops on a
fetch error. All scheduling uses plain :mod:`asyncio`.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol

from asninfo.core.models import DatasetMode, DatasetSnapshot, utcnow
from asninfo.core.store import SnapshotStore
from asninfo.utils.logger import get_logger

logger = get_logger(__name__)

MINIMUM_REFRESH_INTERVAL = 3600


class SnapshotProvider(Protocol):
    """Anything that can build a snapshot, e.g. :class:`~asninfo.providers.ProviderAdapter`."""

    async def fetch(self, mode: DatasetMode) -> DatasetSnapshot:
        ...


class RefreshState(str, Enum):
    """Refresher lifecycle states."""

    IDLE = "idle"
    FETCHING = "fetching"


def clamp_interval(seconds: float) -> int:
    """Raise *seconds* to :data:`MINIMUM_REFRESH_INTERVAL` if it is below it."""
    return int(max(seconds, MINIMUM_REFRESH_INTERVAL))


class BackgroundRefresher:
    """Timer-driven writer for a :class:`SnapshotStore`.

    Example::

        refresher = BackgroundRefresher(store, adapter, DatasetMode.FULL, 21600)
        await refresher.start()
        # ...
        await refresher.stop()
    """

    def __init__(
        self,
        store: SnapshotStore,
        provider: SnapshotProvider,
        mode: DatasetMode = DatasetMode.FULL,
        interval: float = 21600,
        retries: int = 0,
        retry_delay: float = 60.0,
    ) -> None:
        """Initialise the refresher.

        Args:
            store: Store receiving new snapshots.
            provider: Snapshot source, called once per tick.
            mode: Dataset mode, fixed for the lifetime of the process.
            interval: Seconds between refreshes; values below 3600 are raised to 3600.
            retries: Extra fetch attempts within one tick after a failure.
            retry_delay: Base delay in seconds for exponential backoff between attempts.
        """
        self._store = store
        self._provider = provider
        self._mode = DatasetMode(mode)
        self._interval = clamp_interval(interval)
        self._retries = max(retries, 0)
        self._retry_delay = retry_delay
        self._task: Optional[asyncio.Task[None]] = None
        self._running = False
        self.state = RefreshState.IDLE
        self.last_success: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def interval(self) -> int:
        """Effective refresh interval in seconds (after clamping)."""
        return self._interval

    @property
    def mode(self) -> DatasetMode:
        return self._mode

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background refresh loop."""
        if self._task is not None:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "Background refresher started (%s mode, every %d seconds)",
            self._mode.value,
            self._interval,
        )

    async def stop(self) -> None:
        """Stop the background refresh loop."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh_once(self) -> bool:
        """Fetch a new snapshot and commit it if the fetch succeeds.

        Returns:
            ``True`` if the store was updated, ``False`` if every attempt failed
            and the previous snapshot was kept.
        """
        self.state = RefreshState.FETCHING
        try:
            for attempt in range(self._retries + 1):
                try:
                    snapshot = await self._provider.fetch(self._mode)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:  # noqa: BLE001
                    self.last_error = str(exc) or type(exc).__name__
                    if attempt < self._retries:
                        backoff = self._retry_delay * (2 ** attempt)
                        logger.warning(
                            "Refresh attempt %d/%d failed: %s, retrying in %.1fs",
                            attempt + 1,
                            self._retries + 1,
                            exc,
                            backoff,
                        )
                        await asyncio.sleep(backoff)
                    else:
                        logger.error(
                            "Refresh failed, keeping snapshot from %s: %s",
                            self._store.get().updated_at_str,
                            exc,
                        )
                    continue
                self._store.replace(snapshot)
                self.last_success = utcnow()
                self.last_error = None
                logger.info("ASN data updated (%d records)", len(snapshot))
                return True
            return False
        finally:
            self.state = RefreshState.IDLE

    async def _loop(self) -> None:
        """Internal refresh loop: sleep, then refresh, forever."""
        while self._running:
            await asyncio.sleep(self._interval)
            logger.info("Refreshing ASN data ...")
            try:
                await self.refresh_once()
            except asyncio.CancelledError:
                raise
            except Exception:  # noqa: BLE001
                logger.exception("Unexpected error during background refresh")
