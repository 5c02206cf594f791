"""Get-or-compute-once cache shared by concurrent workers.

A single lock guards the key table; the computation itself runs outside
the lock. The first requester of a key owns a ``Future`` and computes it,
every later requester blocks on that same ``Future`` and observes the
identical result (or exception).
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Generic, Hashable, Iterator, Tuple, TypeVar

logger = logging.getLogger("esmready.runtime.cache")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class OnceCache(Generic[K, V]):
    """Concurrency-safe memo table with compute-once semantics.

    Scoped to one report generation: create it, share it between workers,
    drop it with the report.
    """

    def __init__(self, name: str = "cache") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._futures: Dict[K, Future] = {}
        self._computed = 0

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        """Return the value for ``key``, computing it at most once.

        Args:
            key: Hashable cache key.
            compute: Zero-argument callable producing the value. It must not
                call back into this cache for the same key.

        Returns:
            The cached or freshly computed value.

        Raises:
            Exception: Whatever ``compute`` raised, re-raised to every waiter.
        """
        with self._lock:
            future = self._futures.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._futures[key] = future

        if not owner:
            return future.result()

        try:
            value = compute()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        future.set_result(value)
        with self._lock:
            self._computed += 1
        return value

    def peek(self, key: K) -> Tuple[bool, V]:
        """Return ``(True, value)`` if ``key`` finished computing successfully."""
        with self._lock:
            future = self._futures.get(key)
        if future is None or not future.done() or future.exception() is not None:
            return False, None  # type: ignore[return-value]
        return True, future.result()

    def items(self) -> Iterator[Tuple[K, V]]:
        """Iterate over successfully computed entries (snapshot)."""
        with self._lock:
            snapshot = list(self._futures.items())
        for key, future in snapshot:
            if future.done() and future.exception() is None:
                yield key, future.result()

    @property
    def computed(self) -> int:
        """Number of values actually computed (cache misses)."""
        with self._lock:
            return self._computed

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._futures

    def __len__(self) -> int:
        with self._lock:
            return len(self._futures)


__all__ = ["OnceCache"]
