# restclient/dedup.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from .core.cache import Cache
from .domain.models import IDEMPOTENT_METHODS, RestResponse

log = logging.getLogger(__name__)

DEFAULT_DATA_TTL = 3_000  # ms


def promise_key(request_key: str) -> str:
    return f"{request_key}#promise"


def data_key(request_key: str) -> str:
    return f"{request_key}#data"


class RequestCache:
    """
    Dedup + short-lived result cache keyed by the caller's ``request_key``.

    Two entries per key share one store:
      ``<key>#promise``  in-flight task of a GET/DELETE, dropped when it settles
      ``<key>#data``     successful GET result, kept for the caller's ttl
    """

    def __init__(self, store: Cache, default_ttl: float = DEFAULT_DATA_TTL):
        self.store = store
        self.default_ttl = default_ttl

    def before_dispatch(self, method: str, request_key: Optional[str],
                        ttl: Optional[float]) -> Optional[Any]:
        """In-flight task or cached RestResponse to reuse, else None."""
        if not request_key:
            return None
        if method in IDEMPOTENT_METHODS:
            pending = self.store.get(promise_key(request_key))
            if pending is not None:
                log.debug("joining in-flight %s for %r", method, request_key)
                return pending
        if method == "GET" and ttl:
            data = self.store.get(data_key(request_key))
            if data is not None:
                log.debug("cache hit for %r", request_key)
                return data
        return None

    def register_in_flight(self, method: str, request_key: Optional[str],
                           task: "asyncio.Future[RestResponse]") -> None:
        if request_key and method in IDEMPOTENT_METHODS:
            self.store.set(promise_key(request_key), task)

    def release(self, method: str, request_key: Optional[str],
                task: "Optional[asyncio.Future[RestResponse]]") -> None:
        """Drop the in-flight entry, but only if it is still the one this call registered."""
        if not request_key or method not in IDEMPOTENT_METHODS:
            return
        key = promise_key(request_key)
        if task is None or self.store.get(key) is task:
            self.store.delete(key)

    def after_success(self, method: str, request_key: Optional[str],
                      ttl: Optional[float], data: RestResponse) -> None:
        if not request_key:
            return
        if method == "DELETE":
            self.store.delete(data_key(request_key))
        elif method in IDEMPOTENT_METHODS and ttl is not None:
            self.store.set(data_key(request_key), data, ttl or self.default_ttl)
