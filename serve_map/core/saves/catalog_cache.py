from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from serve_map.core.saves.models import Catalog


@dataclass(frozen=True, slots=True)
class CatalogSnapshot:
    catalog: Catalog
    started_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(slots=True)
class _PendingRefresh:
    task: asyncio.Task[Catalog]
    started_at: float


class CatalogCache:
    """Holds the most recent catalog for at most ``ttl_seconds``.

    A refresh builds a complete snapshot and then replaces the reference in a
    single assignment; readers only ever see whole snapshots. The staleness
    window is measured from the start of the scan that produced a snapshot.
    A TTL of zero disables caching and every call performs its own scan.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[Catalog]],
        ttl_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self._refresh = refresh
        self._ttl_seconds = max(0.0, float(ttl_seconds))
        self._clock = clock
        self._logger = logger or logging.getLogger("serve_map.cache")
        self._snapshot: CatalogSnapshot | None = None
        self._pending: _PendingRefresh | None = None

    @property
    def snapshot(self) -> CatalogSnapshot | None:
        return self._snapshot

    async def get(self) -> Catalog:
        now = self._clock()
        snapshot = self._snapshot
        if snapshot is not None and not snapshot.is_expired(now):
            return snapshot.catalog

        pending = self._pending
        if pending is None or pending.task.done() or pending.started_at + self._ttl_seconds <= now:
            pending = self._start_refresh(now)

        # Shielded so a cancelled request does not abort a scan other requests wait on.
        return await asyncio.shield(pending.task)

    def _start_refresh(self, now: float) -> _PendingRefresh:
        task = asyncio.get_running_loop().create_task(self._refresh())
        pending = _PendingRefresh(task=task, started_at=now)
        if self._ttl_seconds > 0:
            self._pending = pending
        task.add_done_callback(lambda done: self._on_refresh_done(pending, done))
        return pending

    def _on_refresh_done(self, pending: _PendingRefresh, task: asyncio.Task[Catalog]) -> None:
        if self._pending is pending:
            self._pending = None

        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            self._logger.debug("Catalog refresh failed: %s", error)
            return

        if self._ttl_seconds <= 0:
            return

        current = self._snapshot
        if current is not None and current.started_at > pending.started_at:
            return

        self._snapshot = CatalogSnapshot(
            catalog=task.result(),
            started_at=pending.started_at,
            expires_at=pending.started_at + self._ttl_seconds,
        )
