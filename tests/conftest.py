from typing import Any, List

import httpx
import pytest_asyncio

from restclient.client import RestClient
from upstream import Upstream

BASE_URL = "https://client.api.com"


@pytest_asyncio.fixture
async def make_client():
    clients: List[RestClient] = []

    def _make(upstream: Upstream, **options: Any) -> RestClient:
        options.setdefault("client_options", {"transport": httpx.MockTransport(upstream)})
        client = RestClient(options.pop("base_url", BASE_URL), **options)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.close()
