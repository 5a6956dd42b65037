"""
Read-through snapshot cache for the full employee collection.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Tuple

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..domain.models import DirectorySnapshot, EmployeeRecord


class EmployeeSource(Protocol):
    """Anything that can list the full employee collection."""

    async def list_employees(self) -> List[EmployeeRecord]:
        ...


class EmployeeCache(Protocol):
    """Read side used by the directory service."""

    async def get_all(self) -> List[EmployeeRecord]:
        ...

    def invalidate(self) -> None:
        ...

    def stats(self) -> Dict[str, Any]:
        ...


class _PendingFetch:
    """A fetch in flight together with the generation it serves."""

    __slots__ = ("generation", "task")

    def __init__(self, generation: int, task: "asyncio.Task[Tuple[EmployeeRecord, ...]]"):
        self.generation = generation
        self.task = task


class DirectorySnapshotCache:
    """Cache-aside holder of the last fetched employee collection.

    Concurrent ``get_all`` calls on a missing or stale snapshot share one
    upstream fetch. ``invalidate`` bumps a generation counter; a snapshot is
    only served while its generation is current. A fetch started for an
    older generation is allowed to finish first so that no two
    ``list_employees`` calls ever overlap.
    """

    cache_type = "snapshot"

    def __init__(self, source: EmployeeSource, metrics: Optional[MetricsCollector] = None):
        self.source = source
        self.metrics = metrics
        self.logger = get_logger("directory.cache")

        self._lock = asyncio.Lock()
        self._snapshot: Optional[DirectorySnapshot] = None
        self._pending: Optional[_PendingFetch] = None
        self._generation = 0

        self._hits = 0
        self._misses = 0
        self._fetches = 0

    @property
    def snapshot(self) -> Optional[DirectorySnapshot]:
        return self._snapshot

    def is_fresh(self) -> bool:
        return self._snapshot is not None and self._snapshot.generation == self._generation

    async def get_all(self) -> List[EmployeeRecord]:
        """Return the current snapshot, fetching it once if missing or stale."""
        async with self._lock:
            if self.is_fresh():
                self._hits += 1
                self._count("cache_hits_total")
                self.logger.debug("Snapshot cache hit", size=len(self._snapshot))
                return list(self._snapshot.records)

            self._misses += 1
            self._count("cache_misses_total")

            pending = self._pending
            if pending is None or pending.generation != self._generation or pending.task.cancelled():
                pending = self._start_fetch(previous=pending)

        # Followers must not cancel the shared fetch when they are cancelled
        records = await asyncio.shield(pending.task)
        return list(records)

    def invalidate(self) -> None:
        """Mark the current snapshot stale. Never blocks."""
        self._generation += 1
        self.logger.debug("Snapshot invalidated", generation=self._generation)

    def stats(self) -> Dict[str, Any]:
        snapshot = self._snapshot
        age = None
        if snapshot is not None:
            age = (datetime.now(timezone.utc) - snapshot.fetched_at).total_seconds()
        return {
            "type": self.cache_type,
            "hits": self._hits,
            "misses": self._misses,
            "fetches": self._fetches,
            "generation": self._generation,
            "fresh": self.is_fresh(),
            "size": len(snapshot) if snapshot is not None else 0,
            "age_seconds": age,
            "fetch_in_flight": self._pending is not None,
        }

    def _start_fetch(self, previous: Optional[_PendingFetch]) -> _PendingFetch:
        # Caller holds the lock
        generation = self._generation
        previous_task = previous.task if previous is not None else None
        task = asyncio.ensure_future(self._fetch(generation, previous_task))
        self._pending = _PendingFetch(generation, task)
        self.logger.debug("Elected fetch leader", generation=generation, waits_for_previous=previous_task is not None)
        return self._pending

    async def _fetch(self, generation: int, previous: Optional[asyncio.Task]) -> Tuple[EmployeeRecord, ...]:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])

        self._fetches += 1
        self._count("upstream_fetches_total")
        started = time.time()
        try:
            records = tuple(await self.source.list_employees())
        except Exception as exc:
            # The client contract is to never raise; keep the cache usable if it does
            self.logger.exception("Employee fetch raised", error=str(exc))
            records = ()
        finally:
            if self.metrics:
                self.metrics.observe_histogram(
                    "upstream_fetch_duration_seconds", time.time() - started, cache_type=self.cache_type
                )

        async with self._lock:
            snapshot = DirectorySnapshot(
                records=records,
                fetched_at=datetime.now(timezone.utc),
                generation=generation,
            )
            # An older-generation result is kept but stays stale
            if self._snapshot is None or self._snapshot.generation <= generation:
                self._snapshot = snapshot
            if self._pending is not None and self._pending.generation == generation:
                self._pending = None

        self.logger.info("Fetched employee snapshot", size=len(records), generation=generation)
        return records

    def _count(self, metric_name: str) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, cache_type=self.cache_type)


class PassThroughDirectoryCache:
    """Non-caching implementation: every read goes upstream."""

    cache_type = "pass_through"

    def __init__(self, source: EmployeeSource, metrics: Optional[MetricsCollector] = None):
        self.source = source
        self.metrics = metrics
        self._fetches = 0

    async def get_all(self) -> List[EmployeeRecord]:
        self._fetches += 1
        if self.metrics:
            self.metrics.increment_counter("upstream_fetches_total", cache_type=self.cache_type)
        return list(await self.source.list_employees())

    def invalidate(self) -> None:
        pass

    def stats(self) -> Dict[str, Any]:
        return {"type": self.cache_type, "fetches": self._fetches}


def build_cache(source: EmployeeSource, enabled: bool = True,
                metrics: Optional[MetricsCollector] = None) -> EmployeeCache:
    """Select the cache implementation at wiring time."""
    if enabled:
        return DirectorySnapshotCache(source, metrics=metrics)
    return PassThroughDirectoryCache(source, metrics=metrics)
