"""In-process TTL cache for resolution results.

Entries are stored as orjson bytes so a cached answer is bit-identical to
the one first returned, and cannot be mutated through a shared reference.
Expired entries are removed lazily, on the read that finds them. The cache
is the only mutable state shared between concurrent resolutions; a single
lock guards it and is never held across an await.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

import orjson

from nutrition_resolver.observability.logging import get_logger
from nutrition_resolver.observability.metrics import record_cache_lookup
from nutrition_resolver.resolution.exceptions import CacheCorruptError
from nutrition_resolver.schemas.product import ResolutionOrigin, ResolutionResult


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


logger = get_logger(__name__)

DEFAULT_TTL_SECONDS: Final[float] = 24 * 60 * 60
DEFAULT_AI_TTL_SECONDS: Final[float] = 6 * 60 * 60
DEFAULT_MAX_ENTRIES: Final[int] = 5000


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    value: bytes
    stored_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at >= self.ttl


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot returned by ``NutritionResolver.stats``."""

    entry_count: int
    per_source_hit_counts: Mapping[str, int] = field(default_factory=dict)
    cache_hits: int = 0
    cache_misses: int = 0


def encode_result(result: ResolutionResult) -> bytes:
    return orjson.dumps(result)


def decode_result(value: bytes) -> ResolutionResult:
    """Rebuild a result from cached bytes.

    Raises:
        CacheCorruptError: If the bytes are not a serialized result.
    """
    try:
        return ResolutionResult.from_dict(orjson.loads(value))
    except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        msg = f"Undecodable cache entry: {e}"
        raise CacheCorruptError(msg) from e


class ResultCache:
    """TTL + LRU cache of resolution results keyed by normalized query.

    Attributes:
        ttl_seconds: Lifetime of structured (provider-backed) results.
        ai_ttl_seconds: Lifetime of AI-derived results.
        max_entries: Size bound; the least recently used entry is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        ai_ttl_seconds: float = DEFAULT_AI_TTL_SECONDS,
        max_entries: int | None = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.ai_ttl_seconds = ai_ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _now(self) -> float:
        # Looked up on every call so patched clocks (freezegun) are honored.
        return self._clock() if self._clock is not None else time.time()

    def ttl_for(self, result: ResolutionResult) -> float:
        if result.origin is ResolutionOrigin.AI_FALLBACK:
            return self.ai_ttl_seconds
        return self.ttl_seconds

    def get(self, key: str) -> ResolutionResult | None:
        """Return the cached result for ``key`` while it is fresh."""
        now = self._now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_expired(now):
                del self._entries[key]
                entry = None
            if entry is not None:
                self._entries.move_to_end(key)

        if entry is None:
            self._count(hit=False)
            return None

        try:
            result = decode_result(entry.value)
        except CacheCorruptError as e:
            logger.warning("Dropping corrupt cache entry", key=key, error=str(e))
            with self._lock:
                if self._entries.get(key) is entry:
                    del self._entries[key]
            self._count(hit=False)
            return None

        self._count(hit=True)
        return result

    def put(self, key: str, result: ResolutionResult, ttl: float | None = None) -> None:
        """Store ``result`` under ``key``, overwriting any previous entry.

        The TTL defaults by origin: AI-derived results expire sooner.
        """
        entry = CacheEntry(
            key=key,
            value=encode_result(result),
            stored_at=self._now(),
            ttl=ttl if ttl is not None else self.ttl_for(result),
        )
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Evicted least recently used cache entry", key=evicted)

    def invalidate(self, key: str) -> int:
        """Remove one entry. Returns the number of entries removed (0 or 1)."""
        with self._lock:
            return 1 if self._entries.pop(key, None) is not None else 0

    def clear(self) -> int:
        """Remove every entry. Returns how many were removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

    def _count(self, *, hit: bool) -> None:
        with self._lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1
        record_cache_lookup(hit=hit)

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
