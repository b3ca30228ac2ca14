"""Process-local, time-bounded snapshot of every feature flag.

The cache owns one immutable snapshot (a tuple of frozen ``FeatureFlag``
objects) and replaces it wholesale. Repository failures never escape: an
expired snapshot is served instead (``stale=True``), and with no snapshot at
all the result is empty so every evaluation resolves to "off".

At most one refresh runs at a time. While it is in flight, callers that already
hold a snapshot get it immediately; only callers with nothing to serve wait on
the in-flight read.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...domain.feature import FeatureFlag
from ...logging_config import get_logger
from ...ports.repositories import FlagSource

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_REFRESH_TIMEOUT_SECONDS = 5.0


def _record_refresh(result: str) -> None:
    """Record refresh metrics (lazy import to avoid circular dependency)."""
    try:
        from ...metrics import FLAG_CACHE_REFRESHES

        if FLAG_CACHE_REFRESHES is not None:
            FLAG_CACHE_REFRESHES.labels(result=result).inc()
    except Exception as e:
        logger.debug("flag_cache_metric_failed", extra={"error": str(e)})


def _record_stale_serve() -> None:
    try:
        from ...metrics import FLAG_CACHE_STALE_SERVES

        if FLAG_CACHE_STALE_SERVES is not None:
            FLAG_CACHE_STALE_SERVES.inc()
    except Exception as e:
        logger.debug("flag_cache_metric_failed", extra={"error": str(e)})


@dataclass(frozen=True)
class FlagSnapshot:
    flags: Tuple[FeatureFlag, ...]
    stale: bool = False
    refreshed_at: Optional[float] = None
    error: Optional[str] = None


class FlagCache:
    def __init__(
        self,
        source: FlagSource,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        refresh_timeout_seconds: Optional[float] = DEFAULT_REFRESH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.ttl_seconds = ttl_seconds
        self.refresh_timeout_seconds = refresh_timeout_seconds
        self.clock = clock
        self._flags: Optional[Tuple[FeatureFlag, ...]] = None
        self._refreshed_at: Optional[float] = None
        # bumped by invalidate(); a refresh started under an older generation
        # must not install its result
        self._generation = 0
        self._refresh_task: Optional[asyncio.Task] = None
        self._refresh_generation = 0
        self._background_task: Optional[asyncio.Task] = None

    def _is_fresh(self, now: float) -> bool:
        return (
            self._flags is not None
            and self._refreshed_at is not None
            and now - self._refreshed_at < self.ttl_seconds
        )

    def _current(self, stale: bool, error: Optional[str] = None) -> FlagSnapshot:
        return FlagSnapshot(
            flags=self._flags or (),
            stale=stale,
            refreshed_at=self._refreshed_at,
            error=error,
        )

    def _ensure_refresh(self) -> Tuple["asyncio.Task[FlagSnapshot]", int]:
        task = self._refresh_task
        if task is None or task.done():
            self._refresh_generation = self._generation
            task = asyncio.ensure_future(self._refresh(self._generation))
            self._refresh_task = task
        return task, self._refresh_generation

    async def _refresh(self, generation: int) -> FlagSnapshot:
        started = self.clock()
        try:
            if self.refresh_timeout_seconds:
                flags = await asyncio.wait_for(
                    self.source.list_flags(), timeout=self.refresh_timeout_seconds
                )
            else:
                flags = await self.source.list_flags()
            snapshot = tuple(flags)
        except asyncio.TimeoutError:
            _record_refresh("timeout")
            logger.warning(
                "flag_cache_refresh_timeout",
                extra={
                    "timeout_seconds": self.refresh_timeout_seconds,
                    "has_snapshot": self._flags is not None,
                },
            )
            return self._current(stale=True, error="timeout")
        except Exception as e:
            _record_refresh("failure")
            logger.error(
                "flag_cache_refresh_failed",
                extra={"error": str(e), "has_snapshot": self._flags is not None},
            )
            return self._current(stale=True, error=str(e))

        _record_refresh("success")
        if generation != self._generation:
            # invalidated while reading; hand the data back but do not keep it
            logger.debug("flag_cache_refresh_discarded", extra={"count": len(snapshot)})
            return FlagSnapshot(flags=snapshot, stale=True, refreshed_at=started)
        self._flags = snapshot
        self._refreshed_at = started
        logger.info("flag_cache_refreshed", extra={"count": len(snapshot)})
        return FlagSnapshot(flags=snapshot, stale=False, refreshed_at=started)

    async def fetch(self) -> FlagSnapshot:
        """Return the current snapshot, refreshing it first when expired."""
        while True:
            if self._is_fresh(self.clock()):
                return self._current(stale=False)
            in_flight = self._refresh_task is not None and not self._refresh_task.done()
            if in_flight and self._flags is not None:
                _record_stale_serve()
                return self._current(stale=True)
            task, generation = self._ensure_refresh()
            result = await asyncio.shield(task)
            if generation == self._generation:
                if result.stale and result.flags:
                    _record_stale_serve()
                return result
            # invalidated during the read: go round again for post-mutation data

    async def get_all(self) -> List[FeatureFlag]:
        snapshot = await self.fetch()
        return list(snapshot.flags)

    async def refresh(self) -> FlagSnapshot:
        """Force a repository read now (joins a refresh already in flight)."""
        task, _ = self._ensure_refresh()
        return await asyncio.shield(task)

    def invalidate(self) -> None:
        self._flags = None
        self._refreshed_at = None
        self._generation += 1
        logger.debug("flag_cache_invalidated", extra={"generation": self._generation})

    def status(self) -> Dict[str, Any]:
        now = self.clock()
        age = None if self._refreshed_at is None else max(0.0, now - self._refreshed_at)
        return {
            "size": len(self._flags or ()),
            "has_snapshot": self._flags is not None,
            "stale": not self._is_fresh(now),
            "age_seconds": age,
            "ttl_seconds": self.ttl_seconds,
            "refreshing": self._refresh_task is not None and not self._refresh_task.done(),
        }

    def start_background_refresh(self, interval_seconds: float) -> None:
        """Keep the snapshot warm from a background task instead of on demand."""
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if self._background_task is not None and not self._background_task.done():
            return

        async def _refresh_loop():
            while True:
                await self.refresh()
                await asyncio.sleep(interval_seconds)

        self._background_task = asyncio.ensure_future(_refresh_loop())
        logger.info("flag_cache_background_refresh_started", interval_seconds=interval_seconds)

    async def aclose(self) -> None:
        for task in (self._background_task, self._refresh_task):
            if task is None or task.done():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._background_task = None
        self._refresh_task = None
