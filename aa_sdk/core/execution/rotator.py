"""
Round-robin rotation over signing keys.

Used to spread paymaster-verifying signatures across several keys.
"""

from __future__ import annotations

import threading
from typing import Generic, Iterable, List, Optional, Protocol, TypeVar

from eth_account.signers.local import LocalAccount


T = TypeVar("T")


class Rotator(Protocol[T]):
    def next(self) -> Optional[T]:
        """Return the next item, or ``None`` when there is nothing to rotate."""
        ...

    def add(self, item: T) -> None:
        ...

    def count(self) -> int:
        ...


class RoundRobin(Generic[T]):
    """
    Thread-safe round-robin rotator.

    The item list and the cursor share one lock, so a ``next()`` racing an
    ``add()`` never indexes past the list it observed.
    """

    def __init__(self, items: Optional[Iterable[T]] = None) -> None:
        self._items: List[T] = list(items or [])
        self._index = 0
        self._lock = threading.Lock()

    def next(self) -> Optional[T]:
        with self._lock:
            if not self._items:
                return None
            current = self._index % len(self._items)
            self._index = (current + 1) % len(self._items)
            return self._items[current]

    def add(self, item: T) -> None:
        with self._lock:
            self._items.append(item)

    def count(self) -> int:
        with self._lock:
            return len(self._items)


class RoundRobinSignerProvider(RoundRobin[LocalAccount]):
    """Round-robin over local signing accounts."""


__all__ = ["Rotator", "RoundRobin", "RoundRobinSignerProvider"]
