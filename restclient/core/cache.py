from __future__ import annotations
import time
from typing import Any, Dict, Optional, Protocol, Tuple


class Cache(Protocol):
    """What the client needs from a cache store. TTLs are milliseconds."""
    def get(self, key: str) -> Optional[Any]: ...
    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None: ...
    def delete(self, key: str) -> None: ...


class TTLCache:
    """Very small, process-local TTL cache. Safe for single-worker (single event loop) use."""
    def __init__(self, default_ttl: float = 30_000, max_items: int = 1000):
        self._ttl = default_ttl
        self._max = max_items
        self._store: Dict[str, Tuple[float, Any]] = {}

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[Any]:
        item = self._store.get(key)
        if not item:
            return None
        exp, val = item
        if exp < time.monotonic():
            self._store.pop(key, None)
            return None
        return val

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        if key not in self._store and len(self._store) >= self._max:
            # drop the entry closest to expiry (cheap sweep)
            oldest = min(self._store.items(), key=lambda p: p[1][0])[0]
            self._store.pop(oldest, None)
        self._store[key] = (time.monotonic() + (ttl or self._ttl) / 1000, value)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()
