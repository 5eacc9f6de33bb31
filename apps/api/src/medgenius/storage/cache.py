"""
Explicit in-process caches.

Caches are objects owned by whoever creates them (the app, a service),
never module-level state. Every entry records whether it holds
placeholder data so a cached placeholder is never served as real.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A cached value with its write time."""

    value: T
    stored_at: float
    is_placeholder: bool = False


class TTLCache(Generic[T]):
    """Keyed cache whose entries expire ttl_seconds after they were written."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> CacheEntry[T] | None:
        """Return the live entry for key, dropping it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return entry

    def set(self, key: str, value: T, is_placeholder: bool = False) -> CacheEntry[T]:
        """Store value under key; expired entries for other keys are dropped too."""
        self.purge_expired()
        entry = CacheEntry(value=value, stored_at=self._clock(), is_placeholder=is_placeholder)
        self._entries[key] = entry
        return entry

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were dropped."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now - e.stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def invalidate(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class _OwnerState:
    last_activity: float
    entries: dict[str, CacheEntry[Any]] = field(default_factory=dict)


class SessionCache:
    """
    Per-user cache of finished analyses.

    A user's entries are dropped on logout (clear_owner) or once they have
    been idle for idle_timeout seconds. Each access counts as activity for
    its owner and sweeps out every other idle owner, so users who never
    come back do not accumulate.
    """

    def __init__(self, idle_timeout: float = 1800, clock: Callable[[], float] = time.monotonic):
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._owners: dict[str, _OwnerState] = {}

    def _state(self, owner: str) -> _OwnerState:
        self.expire_idle()
        now = self._clock()
        state = self._owners.get(owner)
        if state is None:
            state = _OwnerState(last_activity=now)
            self._owners[owner] = state
        state.last_activity = now
        return state

    def touch(self, owner: str) -> None:
        """Record activity for owner without reading or writing entries."""
        self._state(owner)

    def put(self, owner: str, key: str, value: Any, is_placeholder: bool = False) -> CacheEntry[Any]:
        entry = CacheEntry(value=value, stored_at=self._clock(), is_placeholder=is_placeholder)
        self._state(owner).entries[key] = entry
        return entry

    def get(self, owner: str, key: str) -> CacheEntry[Any] | None:
        return self._state(owner).entries.get(key)

    def clear_owner(self, owner: str) -> None:
        self._owners.pop(owner, None)

    def expire_idle(self) -> int:
        """Drop every idle owner; returns how many were dropped."""
        now = self._clock()
        idle = [o for o, s in self._owners.items() if now - s.last_activity >= self.idle_timeout]
        for owner in idle:
            del self._owners[owner]
        return len(idle)

    def __len__(self) -> int:
        return len(self._owners)
