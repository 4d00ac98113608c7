"""
Per-method TTL cache for JSON-RPC responses.
"""

import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from shared.logging import get_logger


@dataclass
class CacheEntry:
    """Cached payload and the instant it was stored (seconds, cache clock)."""

    value: Any
    timestamp: float


class MethodTTLCache:
    """In-memory cache keyed by RPC method name.

    Each key has its own lifetime taken from ``ttls`` (milliseconds). Expired
    entries are dropped lazily when read; there is no size bound and no
    background sweep. All operations are synchronous, so callers on a single
    event loop never interleave a read with the write it informs.
    """

    def __init__(self, ttls: Mapping[str, int], clock: Callable[[], float] = time.monotonic):
        self._ttls = MappingProxyType(dict(ttls))
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._expirations = 0
        self.logger = get_logger("rpc_proxy.cache")

    @property
    def ttls(self) -> Mapping[str, int]:
        return self._ttls

    def is_cacheable(self, key: Any) -> bool:
        return isinstance(key, str) and key in self._ttls

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() > entry.timestamp + self._ttls[key] / 1000.0:
            del self._entries[key]
            self._expirations += 1
            self._misses += 1
            self.logger.debug("Cache entry expired", key=key)
            return None

        self._hits += 1
        return entry.value

    def add(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key`` if the key has a TTL and the value is non-empty."""
        if not self.is_cacheable(key) or not value:
            return False
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "expirations": self._expirations,
            "ttls_ms": dict(self._ttls),
        }
