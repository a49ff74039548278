import threading
import time
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """
    Small in-process cache whose entries expire ``ttl_seconds`` after being set.

    Expired entries are dropped lazily on ``get``, and in bulk by ``cleanup``,
    which ``set`` also runs once ``cleanup_interval`` seconds (default: the
    TTL) have passed since the last sweep. Safe to share between threadpool
    workers.
    """

    def __init__(self, ttl_seconds: float = 60, clock: Callable[[], float] = time.monotonic,
                 cleanup_interval: Optional[float] = None):
        self.ttl = ttl_seconds
        self.cleanup_interval = ttl_seconds if cleanup_interval is None else cleanup_interval
        self._clock = clock
        self._entries: Dict[str, Tuple[T, float]] = {}
        self._lock = threading.RLock()
        self._last_cleanup = clock()

    def set(self, key: str, value: T) -> None:
        with self._lock:
            now = self._clock()
            if now - self._last_cleanup >= self.cleanup_interval:
                self.cleanup()
            self._entries[key] = (value, now)

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self._clock() - stored_at > self.ttl:
                del self._entries[key]
                return None
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        return self.delete_matching(lambda key: key.startswith(prefix))

    def delete_matching(self, predicate: Callable[[str], Any]) -> int:
        with self._lock:
            keys = [key for key in list(self._entries) if predicate(key)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def cleanup(self) -> int:
        with self._lock:
            now = self._clock()
            self._last_cleanup = now
            return self.delete_matching(lambda key: now - self._entries[key][1] > self.ttl)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
