# restclient/client.py
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from .core.cache import Cache, TTLCache
from .core.config import RestClientSettings, RetryConfig, get_settings, resolve_retry_config
from .core.http import Body, HttpxTransport, Transport
from .core.mime import MimeClassifier, is_compressible
from .decoder import decode
from .dedup import RequestCache
from .domain.models import Method, RequestDescriptor, RestResponse, RetryState
from .errors import HttpError, RestClientError
from .retry import RetryPolicy, Sleep

log = logging.getLogger(__name__)


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class RestClient:
    """
    Async REST client with retries, in-flight dedup and short-lived caching.

    Usage:
        async with RestClient("https://api.example.com") as api:
            user = await api.get("/users/1", request_key="user:1", ttl=5_000)

    - ``request_key`` scopes dedup/caching; without it every call hits the network.
    - GET/DELETE calls sharing a key while one is in flight share its result
      (the very same object, success or error).
    - ``ttl`` (ms) caches a successful GET; ``ttl=0`` skips the cache read but
      still refreshes the entry. A successful DELETE evicts the key's cached GET.
    - Non-2xx results raise ``HttpError`` with a normalized ``detail``.
    """

    # ------------ lifecycle ------------
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        cache: Optional[Cache] = None,
        client: Optional[httpx.AsyncClient] = None,
        client_options: Optional[Mapping[str, Any]] = None,
        transport: Optional[Transport] = None,
        retry: "RetryConfig | Mapping[str, Any] | None" = None,
        settings: Optional[RestClientSettings] = None,
        classify: MimeClassifier = is_compressible,
        sleep: Optional[Sleep] = None,
        cache_native: Optional[bool] = None,
    ):
        settings = settings or get_settings()
        base_url = base_url or settings.base_url
        if not base_url:
            raise RestClientError("base_url is required (argument or RESTCLIENT_BASE_URL)")
        self.base_url = base_url.rstrip("/")

        if cache is None:
            cache = TTLCache(default_ttl=settings.cache_ttl_ms, max_items=settings.cache_max_items)
        self._cache = RequestCache(cache, default_ttl=settings.default_data_ttl_ms)

        self.retry_config = resolve_retry_config(retry, settings)
        self._retry = RetryPolicy(self.retry_config, sleep=sleep or asyncio.sleep)
        self._classify = classify

        if transport is not None:
            self._transport: Transport = transport
        elif client is not None:
            self._transport = HttpxTransport(client)
        else:
            if cache_native is None:
                cache_native = settings.cache_native
            options = {"timeout": settings.timeout_seconds, **dict(client_options or {})}
            self._transport = HttpxTransport(cache_native=cache_native,
                                             cache_capacity=settings.cache_max_items, **options)

    @property
    def cache(self) -> Cache:
        return self._cache.store

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "RestClient":
        return self

    async def __aexit__(self, *_exc) -> None:
        await self.close()

    # ------------ verbs ------------
    async def get(self, path: str, *, request_key: Optional[str] = None, ttl: Optional[float] = None,
                  headers: Optional[Mapping[str, str]] = None, return_headers: bool = False) -> Any:
        return await self._verb("GET", path, request_key=request_key, ttl=ttl,
                                headers=headers, return_headers=return_headers)

    async def post(self, path: str, *, body: Any = None, request_key: Optional[str] = None,
                   ttl: Optional[float] = None, headers: Optional[Mapping[str, str]] = None,
                   return_headers: bool = False) -> Any:
        return await self._verb("POST", path, body=body, request_key=request_key, ttl=ttl,
                                headers=headers, return_headers=return_headers)

    async def put(self, path: str, *, body: Any = None, request_key: Optional[str] = None,
                  ttl: Optional[float] = None, headers: Optional[Mapping[str, str]] = None,
                  return_headers: bool = False) -> Any:
        return await self._verb("PUT", path, body=body, request_key=request_key, ttl=ttl,
                                headers=headers, return_headers=return_headers)

    async def patch(self, path: str, *, body: Any = None, request_key: Optional[str] = None,
                    ttl: Optional[float] = None, headers: Optional[Mapping[str, str]] = None,
                    return_headers: bool = False) -> Any:
        return await self._verb("PATCH", path, body=body, request_key=request_key, ttl=ttl,
                                headers=headers, return_headers=return_headers)

    async def delete(self, path: str, *, request_key: Optional[str] = None,
                     headers: Optional[Mapping[str, str]] = None, return_headers: bool = False) -> Any:
        return await self._verb("DELETE", path, request_key=request_key,
                                headers=headers, return_headers=return_headers)

    async def _verb(self, method: Method, path: str, *, headers: Optional[Mapping[str, str]] = None,
                    **options: Any) -> Any:
        return await self.request(RequestDescriptor(method=method, path=path,
                                                    headers=dict(headers or {}), **options))

    # ------------ orchestration ------------
    async def request(self, descriptor: RequestDescriptor) -> Any:
        body, headers = self._prepare_body(descriptor.body, descriptor.headers)

        hit = self._cache.before_dispatch(descriptor.method, descriptor.request_key, descriptor.ttl)
        if hit is not None:
            result = await asyncio.shield(hit) if isinstance(hit, asyncio.Future) else hit
            return self._unwrap(result, descriptor)

        if not (descriptor.request_key and descriptor.idempotent):
            return self._unwrap(await self._execute(descriptor, body, headers), descriptor)

        # registered before the first await so concurrent callers find it
        task = asyncio.ensure_future(self._execute(descriptor, body, headers))
        self._cache.register_in_flight(descriptor.method, descriptor.request_key, task)
        return self._unwrap(await asyncio.shield(task), descriptor)

    async def _execute(self, descriptor: RequestDescriptor, body: Body,
                       headers: Dict[str, str]) -> RestResponse:
        try:
            response = await self._dispatch(descriptor, body, headers)
            if not is_success(response.status_code):
                raise await HttpError.from_response(response)
            result = RestResponse(
                body=await decode(response, classify=self._classify),
                headers=dict(response.headers),
                status_code=response.status_code,
            )
            self._cache.after_success(descriptor.method, descriptor.request_key, descriptor.ttl, result)
            return result
        finally:
            self._cache.release(descriptor.method, descriptor.request_key, asyncio.current_task())

    async def _dispatch(self, descriptor: RequestDescriptor, body: Body,
                        headers: Dict[str, str]) -> httpx.Response:
        """Send, then keep retrying while the policy allows; returns the terminal response."""
        state = RetryState()
        state.last_response = await self._send(descriptor, body, headers)
        while self._retry.should_retry(state):
            delay = self._retry.next_delay(state.last_response, state.attempt_count)
            if delay is None:
                break
            log.info("%s %s -> %s; retry %d/%d in %.0fms", descriptor.method, descriptor.path,
                     state.last_response.status_code, state.attempt_count + 1,
                     self.retry_config.max_retry, delay)
            await self._retry.wait(delay)
            state.attempt_count += 1
            state.last_response = await self._send(descriptor, body, headers)
        return state.last_response

    async def _send(self, descriptor: RequestDescriptor, body: Body,
                    headers: Dict[str, str]) -> httpx.Response:
        try:
            return await self._transport.send(self.base_url, descriptor.path, descriptor.method, headers, body)
        except Exception as exc:
            log.warning("%s %s%s failed: %s", descriptor.method, self.base_url, descriptor.path, exc)
            raise HttpError(500, str(exc)) from exc

    # ------------ helpers ------------
    @staticmethod
    def _prepare_body(body: Any, headers: Mapping[str, str]) -> Tuple[Body, Dict[str, str]]:
        out = dict(headers)
        if body is None or isinstance(body, (str, bytes)):
            return body, out
        out = {k: v for k, v in out.items() if k.lower() != "content-type"}
        out["content-type"] = "application/json"
        return json.dumps(body), out

    @staticmethod
    def _unwrap(result: RestResponse, descriptor: RequestDescriptor) -> Any:
        return result if descriptor.return_headers else result.body
