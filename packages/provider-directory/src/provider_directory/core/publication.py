from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from provider_directory.core.exceptions import SnapshotUnavailableError, UpdateInProgressError

logger = logging.getLogger(__name__)


class PublicationGate:
    """Single owner of the refresh lock, the ``updating`` flag and the published snapshot path.

    Every mutation happens on the event loop while the cycle lock is held, so
    readers on the loop always see either the previous or the new snapshot and
    never a half-finished one.
    """

    def __init__(self) -> None:
        self._cycle_lock = asyncio.Lock()
        self._updating = False
        self._current: Path | None = None

    @property
    def is_updating(self) -> bool:
        return self._updating

    @property
    def published_path(self) -> Path | None:
        return self._current

    @asynccontextmanager
    async def refresh_cycle(self, *, wait: bool = False) -> AsyncIterator[None]:
        if not wait and self._cycle_lock.locked():
            raise UpdateInProgressError("refresh cycle already running")
        async with self._cycle_lock:
            self._updating = True
            try:
                yield
            finally:
                self._updating = False

    def current_snapshot_path(self) -> Path:
        if self._updating:
            raise UpdateInProgressError("refresh cycle in progress")
        if self._current is None:
            raise SnapshotUnavailableError("no snapshot published")
        return self._current

    def publish(self, path: Path) -> Path | None:
        if not self._cycle_lock.locked():
            raise RuntimeError("publish requires an active refresh cycle")
        previous = self._current
        self._current = path
        logger.info(
            "snapshot_published",
            extra={"component": "publication_gate", "path": str(path), "previous": str(previous) if previous else None},
        )
        return previous

    async def restore(self, path: Path) -> bool:
        """Adopt an archive found on disk at startup unless a cycle already published one."""
        async with self._cycle_lock:
            if self._current is not None:
                return False
            self._current = path
        logger.info("snapshot_restored", extra={"component": "publication_gate", "path": str(path)})
        return True
