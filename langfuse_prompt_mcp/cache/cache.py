"""In-memory TTL cache with pattern invalidation.

Entries expire lazily: ``get`` treats an entry whose expiry time has passed as
absent (and drops it), while ``cleanup`` is the only operation that prunes
proactively. ``invalidate_pattern`` lets mutating operations evict every entry
whose key mentions a prompt name.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")

DEFAULT_TTL_SECONDS: float = 300.0


@dataclass
class CacheEntry(Generic[T]):
    """A stored value and the clock reading at which it expires."""

    value: T
    expires_at: float


class TTLCache(Generic[T]):
    """Key/value cache with per-entry expiry and an optional key prefix.

    Every physical key is ``key_prefix + key``. Reads and writes are guarded by
    a lock so the registry sweep can run from its own thread.

    Attributes:
        default_ttl: TTL in seconds applied when ``set`` gets no override.
        key_prefix: Prefix prepended to every key.
    """

    def __init__(
        self,
        *,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        key_prefix: str = "",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds.
            key_prefix: Prefix applied to every key.
            clock: Source of the current time in seconds (monotonic by default).
        """
        self.default_ttl = default_ttl
        self.key_prefix = key_prefix
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _full_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def get(self, key: str) -> Optional[T]:
        """Return the live value for ``key`` or ``None`` when absent or expired."""
        full_key = self._full_key(key)
        with self._lock:
            entry = self._entries.get(full_key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[full_key]
                return None
            return entry.value

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key``, replacing any existing entry.

        Args:
            key: Cache key (the prefix is applied automatically).
            value: Value to store.
            ttl: Optional TTL override in seconds; ``0`` stores an already
                expired entry.
        """
        ttl_seconds = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[self._full_key(key)] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether an entry was removed."""
        with self._lock:
            return self._entries.pop(self._full_key(key), None) is not None

    def clear(self) -> None:
        """Remove every entry of this cache."""
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet swept."""
        with self._lock:
            return len(self._entries)

    def cleanup(self) -> int:
        """Remove every entry whose expiry time has passed.

        Returns:
            The number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired = [k for k, entry in self._entries.items() if entry.expires_at <= now]
            for k in expired:
                del self._entries[k]
        return len(expired)

    def invalidate_pattern(self, pattern: str) -> int:
        """Remove every entry whose prefixed key matches ``pattern``.

        ``pattern`` is searched (not fully matched) as a regular expression, so a
        plain prompt name removes every key containing it. A pattern that does
        not compile is matched literally. Expiry state is ignored.

        Returns:
            The number of entries removed.
        """
        try:
            regex = re.compile(pattern)
        except re.error:
            regex = re.compile(re.escape(pattern))
        with self._lock:
            matched = [k for k in self._entries if regex.search(k)]
            for k in matched:
                del self._entries[k]
        if matched:
            self._logger.debug("TTLCache.invalidate_pattern: pattern=%r removed=%d", pattern, len(matched))
        return len(matched)

    def __len__(self) -> int:
        return self.size()
