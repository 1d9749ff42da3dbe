"""Integration tests for POST /api/estimate."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from src.server.app import create_app
from tests.conftest import make_config, make_estimate, make_openai_envelope


class _FakeOpenAI:
    def __init__(self, response: httpx.Response | None = None) -> None:
        self.calls: list[httpx.Request] = []
        self._response = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self._response is not None:
            return self._response
        content = "  \n" + json.dumps(make_estimate()) + "\n  "
        return httpx.Response(200, json=make_openai_envelope(content))


def _client(fake: _FakeOpenAI, **config: Any) -> AsyncClient:
    app = create_app(make_config(**config), transport=httpx.MockTransport(fake))
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


_BODY = {"category": "Інтернет-магазин", "budget": "40000", "details": "50 товарів, оплата"}


class TestEstimateEndpoint:
    @pytest.mark.asyncio
    async def test_success_with_whitespace_padded_content(self) -> None:
        fake = _FakeOpenAI()
        async with _client(fake) as client:
            resp = await client.post("/api/estimate", json=_BODY)

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/json")
        assert resp.json() == {"estimate": make_estimate()}
        assert len(fake.calls) == 1

    @pytest.mark.asyncio
    async def test_wrong_method_is_405_with_allow(self) -> None:
        fake = _FakeOpenAI()
        async with _client(fake) as client:
            resp = await client.get("/api/estimate")

        assert resp.status_code == 405
        assert resp.headers["allow"] == "POST"
        assert "error" in resp.json()
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_missing_api_key_is_500(self) -> None:
        async with _client(_FakeOpenAI(), openai_api_key=None) as client:
            resp = await client.post("/api/estimate", json=_BODY)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Missing server env OPENAI_API_KEY"}

    @pytest.mark.asyncio
    async def test_bad_json_is_400(self) -> None:
        async with _client(_FakeOpenAI()) as client:
            resp = await client.post(
                "/api/estimate", content=b"{broken", headers={"content-type": "application/json"},
            )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid JSON body"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("body", "error"), [
        ({"details": "x"}, "Missing category"),
        ({"category": "Shop"}, "Missing details"),
        ({"category": "Shop", "details": "   "}, "Missing details"),
    ])
    async def test_missing_fields_are_400_without_upstream(
        self, body: dict[str, Any], error: str,
    ) -> None:
        fake = _FakeOpenAI()
        async with _client(fake) as client:
            resp = await client.post("/api/estimate", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": error}
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_upstream_error_is_502_with_diagnostics(self) -> None:
        fake = _FakeOpenAI(httpx.Response(401, text='{"error": "invalid key"}'))
        async with _client(fake) as client:
            resp = await client.post("/api/estimate", json=_BODY)
        assert resp.status_code == 502
        assert resp.json() == {
            "error": "OpenAI API error",
            "status": 401,
            "body": '{"error": "invalid key"}',
        }

    @pytest.mark.asyncio
    async def test_empty_content_is_502_with_raw(self) -> None:
        envelope = make_openai_envelope("")
        fake = _FakeOpenAI(httpx.Response(200, json=envelope))
        async with _client(fake) as client:
            resp = await client.post("/api/estimate", json=_BODY)
        assert resp.status_code == 502
        assert resp.json() == {"error": "Empty model response", "raw": envelope}

    @pytest.mark.asyncio
    async def test_unparsable_content_is_502(self) -> None:
        fake = _FakeOpenAI(httpx.Response(200, json=make_openai_envelope("Sure! Here it is")))
        async with _client(fake) as client:
            resp = await client.post("/api/estimate", json=_BODY)
        assert resp.status_code == 502
        assert resp.json() == {"error": "Failed to parse model JSON", "content": "Sure! Here it is"}

    @pytest.mark.asyncio
    async def test_oversized_body_is_413(self) -> None:
        fake = _FakeOpenAI()
        async with _client(fake, max_body_bytes=64) as client:
            resp = await client.post("/api/estimate", json={"details": "x" * 200})
        assert resp.status_code == 413
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_deeply_nested_body_is_400(self) -> None:
        fake = _FakeOpenAI()
        async with _client(fake) as client:
            resp = await client.post("/api/estimate", content=b"[" * 200_000)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid JSON body"}
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_non_finite_envelope_is_502(self) -> None:
        fake = _FakeOpenAI(httpx.Response(200, text='{"choices": [], "usage": {"x": NaN}}'))
        async with _client(fake) as client:
            resp = await client.post("/api/estimate", json=_BODY)
        assert resp.status_code == 502
        assert resp.json()["error"] == "Bad JSON from OpenAI"

    @pytest.mark.asyncio
    async def test_unrouted_method_is_405_with_allow(self) -> None:
        fake = _FakeOpenAI()
        async with _client(fake) as client:
            resp = await client.request("TRACE", "/api/estimate")
        assert resp.status_code == 405
        assert resp.headers["allow"] == "POST"
        assert resp.json() == {"error": "Method not allowed"}
        assert fake.calls == []


@pytest.mark.asyncio
async def test_health() -> None:
    async with _client(_FakeOpenAI()) as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_unknown_path_is_json_404() -> None:
    async with _client(_FakeOpenAI()) as client:
        resp = await client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}
