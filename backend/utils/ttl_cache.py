import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from config import get_config


class TTLCache:
    """Process-wide in-memory cache where every entry expires after a TTL.

    Entries are stored as (stored_at, ttl, value). Expired entries are
    dropped lazily on read. The clock is injectable so tests can move time.
    """

    def __init__(self, default_ttl: Optional[int] = None, clock: Callable[[], float] = time.monotonic):
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, float, Any]] = {}
        self._lock = threading.Lock()

    @property
    def default_ttl(self) -> float:
        if self._default_ttl is not None:
            return self._default_ttl
        return get_config().CACHE_TTL

    def get(self, key: str):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, ttl, value = entry
            if self._clock() - stored_at >= ttl:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            now = self._clock()
            # sweep expired entries on every write; keys come from request input
            expired = [k for k, (stored_at, entry_ttl, _) in self._entries.items() if now - stored_at >= entry_ttl]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (now, ttl, value)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_set(self, key: str, producer: Callable[[], Any], ttl: Optional[float] = None):
        value = self.get(key)
        if value is not None:
            return value
        # Producers do network I/O, so they run outside the lock
        value = producer()
        self.set(key, value, ttl)
        return value

    def age(self, key: str) -> Optional[float]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return self._clock() - entry[0]

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


# Global instance
cache = TTLCache()
