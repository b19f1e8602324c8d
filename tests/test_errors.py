import httpx
import pytest
from fastapi import FastAPI

from restclient.errors import HttpError, error_name, reason_phrase
from restclient.handlers import register_exception_handlers

from upstream import Upstream, fail, respond

JSON = {"content-type": "application/json"}


async def relay(client) -> httpx.Response:
    """Serve client.get('/') through a FastAPI route and return what a caller of that route sees."""
    app = register_exception_handlers(FastAPI())

    @app.get("/")
    async def proxy():
        return await client.get("/", request_key="test", ttl=5_000)

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        return await ac.get("/")


@pytest.mark.asyncio
async def test_simple_error(make_client):
    r = await relay(make_client(Upstream(respond(500, content=b"", headers=JSON))))
    assert r.status_code == 500
    assert r.json() == {"message": "Internal Server Error"}


@pytest.mark.asyncio
async def test_error_with_plain_text(make_client):
    r = await relay(make_client(Upstream(respond(500, text="some error text", headers={"content-type": "plain/text"}))))
    assert r.json()["message"] == "some error text"


@pytest.mark.asyncio
async def test_error_with_error_field(make_client):
    r = await relay(make_client(Upstream(respond(500, json={"error": "some error"}))))
    assert r.json()["message"] == "some error"


@pytest.mark.asyncio
async def test_error_with_message_field(make_client):
    r = await relay(make_client(Upstream(respond(500, json={"message": "some error message"}))))
    assert r.json()["message"] == "some error message"


@pytest.mark.asyncio
async def test_error_with_complex_body(make_client):
    r = await relay(make_client(Upstream(respond(422, json={"message": "some error message", "code": "CODE-error"}))))
    assert r.status_code == 422
    assert r.json() == {"message": "some error message", "code": "CODE-error"}


@pytest.mark.asyncio
async def test_transport_error_message_is_kept(make_client):
    r = await relay(make_client(Upstream(fail(httpx.ConnectError("error from transport")))))
    assert r.status_code == 500
    assert r.json() == {"message": "error from transport"}


@pytest.mark.asyncio
async def test_unresolvable_host(make_client):
    client = make_client(Upstream(fail(httpx.ConnectError("[Errno -2] Name or service not known"))),
                         base_url="https://client.api.invalid")
    with pytest.raises(HttpError) as exc:
        await client.get("/", request_key="test", ttl=5_000)
    assert exc.value.status_code == 500
    assert "Name or service not known" in str(exc.value)


def test_http_error_attributes():
    err = HttpError(503, detail={"message": "busy", "code": "SLOW_DOWN", "retry": True})
    assert err.message == "busy"
    assert err.code == "SLOW_DOWN"
    assert err.reason == "Service Unavailable"
    assert err.name == "ServiceUnavailableError"
    assert err.detail == {"message": "busy", "code": "SLOW_DOWN", "retry": True}
    assert isinstance(err, RuntimeError)


def test_http_error_without_message_uses_reason():
    err = HttpError(500, "")
    assert str(err) == "Internal Server Error"
    assert err.code is None


def test_error_names():
    assert reason_phrase(404) == "Not Found"
    assert error_name(404) == "NotFoundError"
    assert error_name(500) == "InternalServerError"
    assert error_name(599) == "UnknownError"
