"""Memoised simulation results keyed by the full set of inputs."""

import logging
import threading
from collections.abc import Callable, Hashable

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 16


class SimulationCache[T]:
    """Bounded least-recently-used cache, safe to share between worker threads.

    Keys must capture every input of the computation (request payload,
    weather source, config), so a hit is always a valid result. Concurrent
    callers asking for the same missing key wait for a single computation.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self.max_entries = max(1, max_entries)
        self._entries: dict[Hashable, T] = {}
        self._in_flight: dict[Hashable, threading.Lock] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def _take_hit(self, key: Hashable) -> tuple[bool, T | None]:
        # caller holds self._lock
        if key not in self._entries:
            return False, None
        self.hits += 1
        value = self._entries.pop(key)
        self._entries[key] = value  # most recently used goes last
        return True, value

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        with self._lock:
            found, value = self._take_hit(key)
            if found:
                return value  # type: ignore[return-value]
            key_lock = self._in_flight.setdefault(key, threading.Lock())

        with key_lock:
            with self._lock:
                found, value = self._take_hit(key)
                if found:
                    return value  # type: ignore[return-value]
                self.misses += 1
            try:
                computed = compute()
            except BaseException:
                with self._lock:
                    self._in_flight.pop(key, None)
                raise
            with self._lock:
                self._entries[key] = computed
                self._in_flight.pop(key, None)
                while len(self._entries) > self.max_entries:
                    evicted = next(iter(self._entries))
                    del self._entries[evicted]
                    logger.debug("Evicted cached simulation (%d entries)", len(self._entries))
            return computed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
