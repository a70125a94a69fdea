#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import threading
import time
from collections.abc import Callable
from typing import Protocol


class IdentityCache(Protocol):
    """A keyed store with TTL semantics shared between service clients.

    Implementations own their own synchronization. Every ``get`` is treated as an
    atomic point-in-time snapshot.
    """

    def get(self, key: str) -> str | None:
        """Return the value stored under ``key`` or None if missing or expired."""
        ...

    def set(self, key: str, value: str, ttl: float) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        ...


class MemoryIdentityCache(IdentityCache):
    """Process-local implementation of :py:class:`IdentityCache`."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        """
        :param clock: Monotonic clock returning seconds, used for expiry checks.
        """
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl: float) -> None:
        if ttl <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl}.")
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
