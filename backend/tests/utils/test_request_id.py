from esports_hub.main import request_id_middleware
from esports_hub.utils.request_id import generate_request_id, get_request_id, resolve_request_id, set_request_id
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
import pytest


def test_request_id_set_and_get() -> None:
    set_request_id("req-abc")
    assert get_request_id() == "req-abc"
    set_request_id(None)
    assert get_request_id() is None


def test_generate_request_id_is_unique_hex() -> None:
    first, second = generate_request_id(), generate_request_id()
    assert first != second
    int(first, 16)


def _app() -> FastAPI:
    app = FastAPI()

    @app.get("/check")
    async def check() -> dict[str, str]:
        return {"rid": get_request_id() or ""}

    app.middleware("http")(request_id_middleware)
    return app


@pytest.mark.asyncio
async def test_request_id_middleware_generates_and_sets_header() -> None:
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/check")
    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.json()["rid"] == resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_middleware_uses_incoming_header() -> None:
    incoming = "req-custom-123"
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test", headers={"X-Request-ID": incoming}) as client:
        resp = await client.get("/check")
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == incoming
    assert resp.json()["rid"] == incoming


def test_resolve_request_id_rejects_malformed_values() -> None:
    assert resolve_request_id("req-custom-123") == "req-custom-123"
    assert resolve_request_id(None) != ""
    assert resolve_request_id("bad id\nwith newline") != "bad id\nwith newline"
    assert len(resolve_request_id("x" * 500)) == 32


@pytest.mark.asyncio
async def test_request_id_middleware_replaces_malformed_header() -> None:
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test", headers={"X-Request-ID": "a b"}) as client:
        resp = await client.get("/check")
    assert resp.headers["X-Request-ID"] != "a b"
    assert resp.json()["rid"] == resp.headers["X-Request-ID"]
