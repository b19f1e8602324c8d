from __future__ import annotations
from typing import Any, Mapping, Optional, Protocol, Union
import hishel
import httpx

Body = Union[str, bytes, None]


class Transport(Protocol):
    """Raw HTTP exchange underneath the client. No retries, no request-key caching."""
    async def send(self, origin: str, path: str, method: str,
                   headers: Mapping[str, str], body: Body) -> httpx.Response: ...

    async def close(self) -> None: ...


def native_cache_transport(inner: Optional[httpx.AsyncBaseTransport] = None,
                           capacity: int = 128) -> hishel.AsyncCacheTransport:
    """RFC 9111 caching (cache-control, expires, validators) in front of the real transport."""
    return hishel.AsyncCacheTransport(
        transport=inner or httpx.AsyncHTTPTransport(),
        storage=hishel.AsyncInMemoryStorage(capacity=capacity),
        controller=hishel.Controller(cacheable_methods=["GET"]),
    )


class HttpxTransport:
    """
    Transport over an httpx.AsyncClient (connection pool, TLS, keep-alive live there).

    With ``cache_native`` the client's transport is wrapped in a hishel cache,
    so responses the server marks cacheable are answered locally. This only
    applies to clients built here, never to an injected ``client``.
    """
    def __init__(self, client: Optional[httpx.AsyncClient] = None, *,
                 timeout: Optional[float] = None, cache_native: bool = False,
                 cache_capacity: int = 128, **client_options: Any):
        if client is None:
            if timeout is not None:
                client_options.setdefault("timeout", timeout)
            if cache_native:
                client_options["transport"] = native_cache_transport(
                    client_options.get("transport"), cache_capacity)
            client = httpx.AsyncClient(**client_options)
        self._http = client

    async def send(self, origin: str, path: str, method: str,
                   headers: Mapping[str, str], body: Body) -> httpx.Response:
        return await self._http.request(method, f"{origin}{path}", headers=dict(headers), content=body)

    async def close(self) -> None:
        await self._http.aclose()
