"""Shared test fixtures for sheetfreak."""

from __future__ import annotations

from typing import Any

import pytest

from sheetfreak.transport import Transport


class RecordingTransport(Transport):
    """Transport that records calls and replies with canned JSON.

    Responses are registered per (method, URL fragment) and consumed in
    order; unmatched calls return an empty dict.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.closed = False
        self._responses: list[tuple[str, str, dict[str, Any]]] = []

    def add(self, method: str, url_fragment: str, response: dict[str, Any]) -> None:
        self._responses.append((method, url_fragment, response))

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        self.calls.append({"method": method, "url": url, "params": params, "body": body})
        for i, (m, fragment, response) in enumerate(self._responses):
            if m == method and fragment in url:
                del self._responses[i]
                return response
        return {}

    async def close(self) -> None:
        self.closed = True

    def calls_to(self, method: str, url_fragment: str = "") -> list[dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and url_fragment in c["url"]]


def sheets_metadata(*sheets: tuple[str, int]) -> dict[str, Any]:
    """Build a spreadsheets.get reply listing (title, sheetId) pairs."""
    return {
        "sheets": [
            {
                "properties": {
                    "sheetId": sheet_id,
                    "title": title,
                    "index": i,
                    "gridProperties": {"rowCount": 1000, "columnCount": 26},
                }
            }
            for i, (title, sheet_id) in enumerate(sheets)
        ]
    }


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()
