"""In-memory cache of validation results keyed by file fingerprint.

The cache guarantees at most one computation per fingerprint, also when
several threads ask for the same fingerprint at once: the first caller
computes while the others wait on a shared future.
"""

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path

from ..config import FingerprintMode
from ..models.validation import SchemaValidationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fingerprint:
    """Identity of one version of one file."""
    path: str | None
    content_hash: str

    @classmethod
    def of(cls, file_path: Path, content: bytes,
           mode: FingerprintMode = FingerprintMode.PATH_AND_CONTENT) -> "Fingerprint":
        """Derive a fingerprint from a path and the bytes read from it.

        In ``path+content`` mode a byte-identical file under another path is a
        different key; in ``content`` mode only the bytes matter.
        """
        content_hash = hashlib.sha256(content).hexdigest()
        if mode == FingerprintMode.CONTENT:
            return cls(path=None, content_hash=content_hash)
        return cls(path=str(Path(file_path).resolve()), content_hash=content_hash)

    def __str__(self) -> str:
        prefix = f"{self.path}#" if self.path else ""
        return f"{prefix}{self.content_hash[:16]}"


@dataclass
class CacheStats:
    """Counters describing cache behavior since creation or the last clear."""
    hits: int = 0
    misses: int = 0
    computations: int = 0
    evictions: int = 0
    expirations: int = 0
    size: int = 0
    cached_bytes: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total


@dataclass(frozen=True)
class _Entry:
    result: SchemaValidationResult
    cached_at: float

    @property
    def size_bytes(self) -> int:
        return self.result.metrics.file_size_bytes if self.result.metrics else 0


class ValidationCache:
    """Thread-safe compute-once cache of SchemaValidationResult values."""

    def __init__(self, max_entries: int | None = None, ttl_seconds: float | None = None,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize cache.

        Args:
            max_entries: Optional bound; least recently used entries are
                evicted beyond it
            ttl_seconds: Optional lifetime of an entry; expired entries are
                recomputed on the next request
            clock: Monotonic time source in seconds
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[Fingerprint, _Entry] = OrderedDict()
        self._pending: dict[Fingerprint, Future] = {}
        self._lock = threading.Lock()
        self._stats = CacheStats()

    def get_or_compute(self, fingerprint: Fingerprint,
                       compute: Callable[[], SchemaValidationResult]) -> SchemaValidationResult:
        """Return the cached result for ``fingerprint``, computing it at most once.

        Args:
            fingerprint: Cache key
            compute: Produces the result on a miss

        Returns:
            The cached or freshly computed result

        Raises:
            Exception: Whatever ``compute`` raised; failed computations are not
                cached and the error reaches every waiting caller
        """
        with self._lock:
            cached = self._lookup_locked(fingerprint)
            if cached is not None:
                self._stats.hits += 1
                logger.debug(f"Cache hit for: {fingerprint}")
                return cached

            pending = self._pending.get(fingerprint)
            if pending is None:
                owner = True
                pending = Future()
                self._pending[fingerprint] = pending
                self._stats.misses += 1
            else:
                owner = False
                self._stats.hits += 1

        if not owner:
            logger.debug(f"Waiting for in-flight validation of: {fingerprint}")
            return pending.result()

        try:
            result = compute()
        except BaseException as e:
            with self._lock:
                self._stats.computations += 1
                del self._pending[fingerprint]
            pending.set_exception(e)
            raise

        with self._lock:
            self._stats.computations += 1
            del self._pending[fingerprint]
            self._entries[fingerprint] = _Entry(result, self._clock())
            self._evict_locked()
        pending.set_result(result)
        logger.debug(f"Cached validation result for: {fingerprint}")
        return result

    def get(self, fingerprint: Fingerprint) -> SchemaValidationResult | None:
        """Return a cached result without computing."""
        with self._lock:
            return self._lookup_locked(fingerprint)

    def invalidate(self, fingerprint: Fingerprint) -> bool:
        """Drop one entry; returns True when something was removed."""
        with self._lock:
            return self._entries.pop(fingerprint, None) is not None

    def clear(self) -> None:
        """Drop every entry and reset the counters."""
        with self._lock:
            self._entries.clear()
            self._stats = CacheStats()
        logger.info("Validation cache cleared")

    def clear_expired(self) -> int:
        """Drop entries older than the TTL; returns how many were removed."""
        if self.ttl_seconds is None:
            return 0
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._expired(entry)]
            for key in expired:
                del self._entries[key]
            self._stats.expirations += len(expired)
        logger.info(f"Cleared {len(expired)} expired cache entries")
        return len(expired)

    @property
    def stats(self) -> CacheStats:
        """Snapshot of the cache counters."""
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                computations=self._stats.computations,
                evictions=self._stats.evictions,
                expirations=self._stats.expirations,
                size=len(self._entries),
                cached_bytes=sum(entry.size_bytes for entry in self._entries.values()),
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, fingerprint: Fingerprint) -> bool:
        with self._lock:
            return fingerprint in self._entries

    def _expired(self, entry: _Entry) -> bool:
        return self.ttl_seconds is not None and self._clock() - entry.cached_at > self.ttl_seconds

    def _lookup_locked(self, fingerprint: Fingerprint) -> SchemaValidationResult | None:
        entry = self._entries.get(fingerprint)
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[fingerprint]
            self._stats.expirations += 1
            logger.debug(f"Cache entry expired for: {fingerprint}")
            return None
        self._entries.move_to_end(fingerprint)
        return entry.result

    def _evict_locked(self) -> None:
        if self.max_entries is None:
            return
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._stats.evictions += 1
            logger.debug(f"Evicted least recently used entry: {evicted}")
