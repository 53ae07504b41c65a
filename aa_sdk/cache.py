import threading
from collections import OrderedDict
from typing import Any, Hashable, Optional, Protocol, Tuple

from aa_sdk.core.errors import require


class AddressCache(Protocol):
    """Cache for smart account addresses. Implementations must be thread-safe."""

    def get(self, key: Hashable) -> Tuple[Optional[Any], bool]:
        ...

    def set(self, key: Hashable, value: Any) -> bool:
        """Store ``value``; return ``True`` if an older entry was evicted."""
        ...


class LRUCache:
    """Simple in-memory LRU cache"""

    def __init__(self, max_size: int = 10000):
        require(max_size >= 1, f"failed to create LRU cache, maxSize: {max_size}")
        self.max_size = max_size
        self._cache: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Tuple[Optional[Any], bool]:
        with self._lock:
            if key not in self._cache:
                return None, False

            # Update access order for LRU
            self._cache.move_to_end(key)
            return self._cache[key], True

    def set(self, key: Hashable, value: Any) -> bool:
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                self._cache[key] = value
                return False

            self._cache[key] = value

            # Evict oldest if over max size
            evicted = False
            while len(self._cache) > self.max_size:
                self._cache.popitem(last=False)
                evicted = True
            return evicted

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        return len(self._cache)


def account_cache_key(owner: str, salt: int) -> str:
    return f"{owner.lower()}-{salt}"
