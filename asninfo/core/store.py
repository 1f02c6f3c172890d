"""Process-wide holder for the current :class:`DatasetSnapshot`.

The store is the only synchronisation point between the background
refresher (single writer) and request handlers (many readers). Snapshots are
immutable, so readers only need the reference: the lock guards the pointer
swap and nothing else. Fetching and merging always happen outside of it.
"""

from __future__ import annotations

import threading
from typing import Optional

from asninfo.core.models import DatasetMode, DatasetSnapshot
from asninfo.utils.logger import get_logger

logger = get_logger(__name__)


class SnapshotStore:
    """Copy-on-write container for the committed dataset snapshot.

    Example::

        store = SnapshotStore(initial_snapshot)
        snapshot = store.get()        # never waits on a refresh
        store.replace(new_snapshot)   # atomic for all later get() calls
    """

    def __init__(self, initial: Optional[DatasetSnapshot] = None) -> None:
        """Initialise the store.

        Args:
            initial: Snapshot to serve first. Defaults to an empty placeholder.
        """
        self._lock = threading.Lock()
        self._snapshot: DatasetSnapshot = initial or DatasetSnapshot.empty()
        self._generation = 0

    def get(self) -> DatasetSnapshot:
        """Return the most recently committed snapshot."""
        with self._lock:
            return self._snapshot

    def replace(self, new: DatasetSnapshot) -> None:
        """Atomically make *new* the snapshot returned by subsequent :meth:`get` calls.

        Args:
            new: Fully-built snapshot to commit.

        Raises:
            TypeError: If *new* is not a :class:`DatasetSnapshot`.
        """
        if not isinstance(new, DatasetSnapshot):
            raise TypeError(f"expected DatasetSnapshot, got {type(new).__name__}")
        with self._lock:
            self._snapshot = new
            self._generation += 1
            generation = self._generation
        logger.debug(
            "Committed snapshot generation %d (%d records, %s mode)",
            generation,
            len(new),
            new.mode.value,
        )

    @property
    def generation(self) -> int:
        """Number of successful :meth:`replace` calls so far."""
        with self._lock:
            return self._generation

    @property
    def mode(self) -> DatasetMode:
        return self.get().mode
