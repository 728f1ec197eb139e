import math
import threading
import time
import logging
from typing import Any, Callable, Hashable, Optional

from cachetools import TTLCache

log = logging.getLogger(__name__)

class ResultCache:
    """
        Thread-safe TTL cache for fetch results.

        Every entry lives for the same fixed ttl. Reads re-check expiry, and a
        background thread purges expired entries every sweep_interval seconds.
        There is no size bound.
    """
    def __init__(self, ttl: float, sweep_interval: float, timer: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._cache = TTLCache(maxsize=math.inf, ttl=ttl, timer=timer)
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._cache.get(key)

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._cache[key] = value

    def sweep(self) -> None:
        with self._lock:
            expired = self._cache.expire()
        if expired:
            log.debug("Swept %d expired cache entries", len(expired))

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def start(self) -> None:
        if self._sweeper is not None:
            return
        self._stop.clear()
        self._sweeper = threading.Thread(target=self._sweep_loop, name="result-cache-sweeper", daemon=True)
        self._sweeper.start()
        log.info("Started cache sweeper (ttl=%ss, interval=%ss)", self.ttl, self.sweep_interval)

    def stop(self) -> None:
        if self._sweeper is None:
            return
        self._stop.set()
        self._sweeper.join()
        self._sweeper = None
        log.info("Stopped cache sweeper")

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self.sweep_interval):
            self.sweep()
