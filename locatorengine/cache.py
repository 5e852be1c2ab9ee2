"""Time- and document-bound cache of resolved handles."""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from locatorengine.logger import get_logger
from locatorengine.models import CacheEntry, CacheStats, ResolvedHandle

if TYPE_CHECKING:
    from locatorengine.models import ElementDescriptor

log = get_logger(__name__)

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL_MS = 300_000
DEFAULT_CLEANUP_INTERVAL = 60.0
DEFAULT_HISTORY_SIZE = 100
KEY_SEPARATOR = "::"

# Fields already spelled out in the key prefix, or irrelevant to matching.
_FINGERPRINT_EXCLUDE = {"description", "strategy_kind", "strategy_value"}


def document_identity_of(handle: ResolvedHandle) -> str:
    """Current URL of the page that owns the handle's locator."""
    return handle.locator.page.url


@dataclass(frozen=True)
class StatsSnapshot:
    stats: CacheStats
    recorded_at: float


class CachePerformanceAnalyzer:
    """Rolling history of cache stats snapshots.

    Only the most recent ``history_size`` snapshots are kept. Totals sum the
    counters across every retained snapshot.
    """

    def __init__(
        self,
        history_size: int = DEFAULT_HISTORY_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._history: deque[StatsSnapshot] = deque(maxlen=history_size)
        self._clock = clock

    def __len__(self) -> int:
        return len(self._history)

    def record(self, stats: CacheStats) -> None:
        self._history.append(StatsSnapshot(stats=stats, recorded_at=self._clock()))

    def average_hit_rate(self) -> float:
        if not self._history:
            return 0.0
        total = sum(snapshot.stats.hit_rate for snapshot in self._history)
        return round(total / len(self._history), 2)

    def total_evictions(self) -> int:
        return sum(snapshot.stats.evictions for snapshot in self._history)

    def total_invalidations(self) -> int:
        return sum(snapshot.stats.invalidations for snapshot in self._history)

    def recent(self, count: int = 10) -> list[StatsSnapshot]:
        """The last ``count`` snapshots, oldest first."""
        if count <= 0:
            return []
        return list(self._history)[-count:]

    def reset(self) -> None:
        self._history.clear()


class ResolutionCache:
    """LRU cache of resolved handles, valid per document and for a TTL.

    Entries are only ever written after a fully successful resolution. A read
    that finds an expired entry, or one whose page has navigated away, deletes
    it on the spot.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_ms: float = DEFAULT_TTL_MS,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        analyzer: CachePerformanceAnalyzer | None = None,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.analyzer = analyzer if analyzer is not None else CachePerformanceAnalyzer()
        self._max_size = max_size
        self._ttl_ms = ttl_ms
        self._cleanup_interval = cleanup_interval
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._cleanup_task: asyncio.Task[None] | None = None
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._invalidations = 0

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def make_key(document_identity: str, descriptor: ElementDescriptor) -> str:
        """Build ``identity::kind::value::fingerprint`` for a descriptor.

        The fingerprint covers filters, spatial constraints, fallbacks and the
        remaining options, so descriptors sharing a primary strategy but
        differing elsewhere get separate entries.
        """
        payload = descriptor.model_dump_json(exclude=_FINGERPRINT_EXCLUDE)
        fingerprint = hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]
        return KEY_SEPARATOR.join(
            [
                document_identity,
                descriptor.strategy_kind.value,
                descriptor.strategy_value,
                fingerprint,
            ]
        )

    # --- Reads ---

    def get(self, key: str) -> ResolvedHandle | None:
        """Return the cached handle, or None on a miss.

        Checks existence, TTL and live document identity in that order.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            reason = self._stale_reason(entry)
            if reason is not None:
                del self._entries[key]
                self._misses += 1
                self._invalidations += 1
                log.debug("cache_entry_stale", key=_short(key), reason=reason)
                return None

            entry.hit_count += 1
            entry.last_accessed_at = self._clock()
            self._hits += 1
            return entry.handle

    def has(self, key: str) -> bool:
        """Check for a live entry without touching hit/miss counters."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if self._stale_reason(entry) is not None:
                del self._entries[key]
                self._invalidations += 1
                return False
            return True

    # --- Writes ---

    def set(
        self,
        key: str,
        handle: ResolvedHandle,
        document_identity: str | None = None,
    ) -> None:
        """Insert a handle, evicting least-recently-accessed entries at capacity."""
        identity = (
            document_identity
            if document_identity is not None
            else document_identity_of(handle)
        )
        now = self._clock()
        with self._lock:
            if key not in self._entries:
                while len(self._entries) >= self._max_size:
                    self._evict_lru()
            self._entries[key] = CacheEntry(
                handle=handle,
                created_at=now,
                last_accessed_at=now,
                document_identity=identity,
            )
        log.debug("element_cached", key=_short(key))

    def invalidate(self, key: str) -> bool:
        with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._invalidations += 1
        log.debug("cache_invalidated", key=_short(key))
        return True

    def invalidate_by_document(self, document_identity: str) -> int:
        """Drop every entry recorded for ``document_identity``."""
        with self._lock:
            keys = [
                key
                for key, entry in self._entries.items()
                if entry.document_identity == document_identity
            ]
            for key in keys:
                del self._entries[key]
            self._invalidations += len(keys)
        if keys:
            log.debug(
                "document_cache_invalidated",
                document=document_identity,
                removed=len(keys),
            )
        return len(keys)

    def invalidate_all(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            self._invalidations += removed
        log.debug("cache_cleared", removed=removed)
        return removed

    def set_max_size(self, max_size: int) -> None:
        """Change capacity, evicting LRU entries until the cache fits."""
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        with self._lock:
            self._max_size = max_size
            while len(self._entries) > self._max_size:
                self._evict_lru()

    def cleanup_expired(self) -> int:
        """Remove expired entries. Safe to run alongside reads and writes."""
        expired = [
            (key, entry)
            for key, entry in list(self._entries.items())
            if self._is_expired(entry)
        ]
        removed = 0
        with self._lock:
            for key, entry in expired:
                # Skip keys re-set since the scan.
                if self._entries.get(key) is entry:
                    del self._entries[key]
                    removed += 1
            self._invalidations += removed
        if removed:
            log.debug("cache_cleanup", removed=removed)
        return removed

    # --- Telemetry ---

    def stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            hit_rate = self._hits / total if total else 0.0
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                hit_rate=round(hit_rate, 2),
                evictions=self._evictions,
                invalidations=self._invalidations,
            )

    def debug_info(self, limit: int = 10) -> dict[str, Any]:
        """Snapshot of configuration, stats and the first ``limit`` entries."""
        now = self._clock()
        entries = [
            {
                "key": _short(key),
                "hits": entry.hit_count,
                "age_s": round(now - entry.created_at, 1),
                "idle_s": round(now - entry.last_accessed_at, 1),
                "document": entry.document_identity,
                "description": entry.handle.description,
            }
            for key, entry in list(self._entries.items())[:limit]
        ]
        return {
            "stats": self.stats().model_dump(),
            "config": {
                "max_size": self._max_size,
                "ttl_ms": self._ttl_ms,
                "auto_cleanup": self.cleanup_running,
            },
            "entries": entries,
            "total_entries": len(self._entries),
            "average_hit_rate": self.analyzer.average_hit_rate(),
        }

    # --- Lifecycle ---

    @property
    def cleanup_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start(self) -> None:
        """Start the periodic cleanup task on the running event loop."""
        if self.cleanup_running:
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        log.debug("cache_cleanup_started", interval=self._cleanup_interval)

    async def stop(self) -> None:
        """Stop the periodic cleanup task, keeping entries."""
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def dispose(self) -> None:
        """Stop cleanup, drop every entry and reset the counters."""
        await self.stop()
        with self._lock:
            self._entries.clear()
            self._hits = self._misses = 0
            self._evictions = self._invalidations = 0
        self.analyzer.reset()

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            self.cleanup_expired()
            self.analyzer.record(self.stats())

    # --- Private helpers ---

    def _is_expired(self, entry: CacheEntry) -> bool:
        return (self._clock() - entry.created_at) * 1000 >= self._ttl_ms

    def _stale_reason(self, entry: CacheEntry) -> str | None:
        if self._is_expired(entry):
            return "expired"
        try:
            current = document_identity_of(entry.handle)
        except Exception:
            return "page_unavailable"
        if current != entry.document_identity:
            return "document_changed"
        return None

    def _evict_lru(self) -> None:
        """Drop the least-recently-accessed entry. Caller holds the lock."""
        if not self._entries:
            return
        oldest = min(self._entries, key=lambda k: self._entries[k].last_accessed_at)
        del self._entries[oldest]
        self._evictions += 1
        log.debug("cache_eviction", key=_short(oldest))


def _short(key: str, width: int = 60) -> str:
    return key if len(key) <= width else f"{key[:width]}..."
