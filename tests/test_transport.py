"""Tests for GoogleAPITransport error mapping."""

from __future__ import annotations

import json

import httpx
import pytest

from sheetfreak.exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    QuotaExceededError,
    TransportError,
)
from sheetfreak.transport import SHEETS_API_BASE, GoogleAPITransport


def make_transport(handler) -> GoogleAPITransport:
    transport = GoogleAPITransport(access_token="test-token")
    transport._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        headers={"Authorization": "Bearer test-token"},
    )
    return transport


class TestGoogleAPITransport:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        transport = make_transport(handler)
        try:
            result = await transport.request(
                "POST", f"{SHEETS_API_BASE}/x:batchUpdate", params={"a": "1"}, body={"b": 2}
            )
        finally:
            await transport.close()

        assert result == {"ok": True}
        assert seen[0].headers["Authorization"] == "Bearer test-token"
        assert seen[0].url.params["a"] == "1"
        assert json.loads(seen[0].content) == {"b": 2}

    @pytest.mark.asyncio
    async def test_empty_body(self) -> None:
        transport = make_transport(lambda request: httpx.Response(204))
        assert await transport.request("DELETE", "https://example.com/files/x") == {}
        await transport.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error_type"),
        [
            (401, AuthenticationError),
            (403, AuthenticationError),
            (404, NotFoundError),
            (429, QuotaExceededError),
            (500, APIError),
        ],
    )
    async def test_status_mapping(self, status: int, error_type: type) -> None:
        transport = make_transport(
            lambda request: httpx.Response(status, json={"error": {"message": "boom"}})
        )
        with pytest.raises(error_type) as exc_info:
            await transport.request("GET", "https://example.com/x")
        await transport.close()
        if error_type is APIError:
            assert exc_info.value.status_code == 500
            assert "boom" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = make_transport(handler)
        with pytest.raises(TransportError) as exc_info:
            await transport.request("GET", "https://example.com/x")
        await transport.close()
        assert exc_info.value.code == "NETWORK_ERROR"
