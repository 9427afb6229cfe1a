"""Named cache registry with a background expiry sweep.

The registry is an explicit object: the server builds one at startup and passes
it to every tool handler, so independent call sites (a list tool and a get tool,
for instance) share caches by name and can invalidate each other's entries.
Tests construct their own registry instead of resetting a global one.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from .cache import DEFAULT_TTL_SECONDS, TTLCache

DEFAULT_SWEEP_INTERVAL_SECONDS: float = 60.0


class CacheRegistry:
    """Hands out one ``TTLCache`` per logical name.

    The first ``get_or_create`` call for a name decides that cache's options;
    later calls return the same object and ignore their options.

    The sweep runs on a daemon thread started at construction (or by
    ``start``) and stopped by ``close``. It snapshots the registered caches
    under the registry lock and cleans each one outside it, so readers and
    writers are never blocked for longer than a single cache's cleanup.
    """

    def __init__(
        self,
        *,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
        autostart: bool = True,
    ) -> None:
        """Initialize the registry.

        Args:
            sweep_interval: Seconds between two expiry sweeps.
            clock: Clock handed to every cache created by this registry.
            logger: Optional logger; defaults to the module logger.
            autostart: Start the background sweep right away; pass False to
                drive ``sweep`` by hand.
        """
        self._caches: Dict[str, TTLCache[Any]] = {}
        self._lock = threading.Lock()
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        if autostart:
            self.start()

    def get_or_create(
        self,
        name: str,
        *,
        ttl: Optional[float] = None,
        key_prefix: str = "",
    ) -> TTLCache[Any]:
        """Return the cache registered under ``name``, creating it if needed.

        Args:
            name: Logical cache name (e.g. ``"prompts"``).
            ttl: Default TTL in seconds for a newly created cache.
            key_prefix: Key prefix for a newly created cache.

        Returns:
            The shared cache instance for ``name``.
        """
        with self._lock:
            cache = self._caches.get(name)
            if cache is None:
                cache = TTLCache(
                    default_ttl=DEFAULT_TTL_SECONDS if ttl is None else ttl,
                    key_prefix=key_prefix,
                    clock=self._clock,
                )
                self._caches[name] = cache
                self._logger.debug("CacheRegistry: created cache name=%s ttl=%s", name, cache.default_ttl)
            return cache

    def names(self) -> list[str]:
        with self._lock:
            return list(self._caches)

    def clear_all(self) -> None:
        """Empty every registered cache without deregistering it."""
        for cache in self._snapshot():
            cache.clear()

    def sweep(self) -> int:
        """Run ``cleanup`` on every registered cache once.

        Returns:
            Total number of expired entries removed.
        """
        removed = 0
        for cache in self._snapshot():
            removed += cache.cleanup()
        if removed:
            self._logger.debug("CacheRegistry.sweep: removed %d expired entries", removed)
        return removed

    def _snapshot(self) -> list[TTLCache[Any]]:
        with self._lock:
            return list(self._caches.values())

    def _run(self) -> None:
        while not self._stop.wait(self._sweep_interval):
            try:
                self.sweep()
            except Exception:  # pragma: no cover - keep the sweeper alive
                self._logger.exception("CacheRegistry.sweep failed")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background sweep; calling it again is a no-op."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="cache-registry-sweep", daemon=True)
        self._thread.start()
        self._logger.debug("CacheRegistry: sweep started interval=%ss", self._sweep_interval)

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop the background sweep and wait for the thread to exit."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)
            self._logger.debug("CacheRegistry: sweep stopped")

    def __enter__(self) -> "CacheRegistry":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
