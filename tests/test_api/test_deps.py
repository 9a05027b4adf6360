"""
Tests for API dependencies (backend client lifetime, current user)
"""
import asyncio
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.api.deps import get_bearer_token, get_equiduty_client


def make_request(http_client=None, headers=None):
    state = SimpleNamespace()
    if http_client is not None:
        state.http_client = http_client
    return SimpleNamespace(app=SimpleNamespace(state=state), headers=headers or {})


def drain(request):
    """Run the dependency to completion; returns the yielded client."""
    async def scenario():
        gen = get_equiduty_client(request)
        client = await gen.__anext__()
        was_closed = client.http.is_closed
        with pytest.raises(StopAsyncIteration):
            await gen.__anext__()
        return client, was_closed

    return asyncio.run(scenario())


def test_per_request_pool_is_closed_without_lifespan():
    request = make_request(headers={"Authorization": "Bearer tok"})

    client, was_closed = drain(request)

    assert was_closed is False
    assert client.http.is_closed
    assert not hasattr(request.app.state, "http_client")
    assert client._headers == {"Authorization": "Bearer tok"}


def test_shared_pool_is_left_open():
    shared = httpx.AsyncClient()
    try:
        client, _ = drain(make_request(http_client=shared))
        assert client.http is shared
        assert not shared.is_closed
    finally:
        asyncio.run(shared.aclose())


def test_lifespan_opens_and_closes_pool():
    with TestClient(app):
        http = app.state.http_client
        assert isinstance(http, httpx.AsyncClient)
        assert not http.is_closed
    assert http.is_closed
    assert app.state.http_client is None


@pytest.mark.parametrize("header,expected", [
    ("Bearer abc", "abc"),
    ("bearer  abc ", "abc"),
    ("Basic xyz", None),
    ("Bearer ", None),
])
def test_bearer_token(header, expected):
    assert get_bearer_token(make_request(headers={"Authorization": header})) == expected
