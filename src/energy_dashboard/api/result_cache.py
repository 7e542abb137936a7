"""
Explicit cache for aggregate results.

Entries are keyed by ``(aggregator, state_id, date_window)`` and expire after a
TTL. Because the date window is part of the key, results roll over with the
calendar day on their own. Expired entries are evicted whenever a result is
stored; ``invalidate`` drops entries ahead of time.
"""

import logging
import time
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Hashable, Optional

from ..utils.config import Config

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class CacheKey:
    aggregator: str
    state_id: Optional[str]
    date_window: Hashable


class CacheEntry:
    """A cached value with TTL tracking."""
    
    def __init__(self, value: Any, ttl_seconds: float, created_at: float):
        self.value = value
        self.ttl_seconds = ttl_seconds
        self.created_at = created_at
    
    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl_seconds


class ResultCache:
    """
    Thread-safe TTL cache for aggregator results.
    Failed computations are never stored.
    """
    
    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the cache.
        
        Args:
            ttl_seconds: Entry lifetime (defaults to ``CACHE_TTL_SECONDS``)
            clock: Monotonic time source, replaceable in tests
        """
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else Config.CACHE_TTL_SECONDS
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = RLock()
        self._hits = 0
        self._misses = 0
    
    def _lookup(self, key: CacheKey) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return _MISSING
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._misses += 1
                return _MISSING
            self._hits += 1
            return entry.value
    
    def get(self, key: CacheKey, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value
    
    def set(self, key: CacheKey, value: Any) -> None:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._entries[key] = CacheEntry(value, self.ttl_seconds, now)
    
    def _purge_expired(self, now: float) -> None:
        # Old date windows are never looked up again
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cached results")
    
    def get_or_compute(self, key: CacheKey, compute: Callable[[], Any]) -> Any:
        """
        Return the cached value for ``key``, computing and storing it on a miss.
        
        Exceptions raised by ``compute`` propagate and leave the cache untouched.
        """
        value = self._lookup(key)
        if value is not _MISSING:
            return value
        
        value = compute()
        self.set(key, value)
        return value
    
    def invalidate(self, aggregator: Optional[str] = None, state_id: Optional[str] = None) -> int:
        """
        Drop matching entries.
        
        Args:
            aggregator: Only entries of this aggregator (all when None)
            state_id: Only entries for this state (all when None)
            
        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [
                key for key in self._entries
                if (aggregator is None or key.aggregator == aggregator)
                and (state_id is None or key.state_id == state_id)
            ]
            for key in doomed:
                del self._entries[key]
        
        logger.info(f"Invalidated {len(doomed)} cached results "
                    f"(aggregator={aggregator or '*'}, state={state_id or '*'})")
        return len(doomed)
    
    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
    
    def get_stats(self) -> Dict[str, Any]:
        """Hit/miss statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / lookups if lookups else 0.0,
                'size': len(self._entries),
            }
