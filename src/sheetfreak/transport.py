"""Transport layer for Google API calls.

Defines the Transport protocol and its production implementation:
- GoogleAPITransport: authenticated HTTPS transport shared by the Sheets,
  Drive and Apps Script clients
"""

from __future__ import annotations

import ssl
from abc import ABC, abstractmethod
from typing import Any

import certifi
import httpx
from loguru import logger

from sheetfreak.exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    QuotaExceededError,
    TransportError,
)

# API constants
SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
SCRIPT_API_BASE = "https://script.googleapis.com/v1"
DEFAULT_TIMEOUT = 60


class Transport(ABC):
    """Abstract base class for Google API transport.

    Clients build URLs and bodies; the transport performs the call and maps
    failures onto the sheetfreak exception hierarchy.
    """

    @abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Perform an API call and return the decoded JSON response.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            url: Absolute API URL
            params: Query parameters
            body: JSON request body

        Returns:
            Decoded response, or an empty dict for empty bodies
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        ...


class GoogleAPITransport(Transport):
    """Production transport talking to Google APIs over HTTPS."""

    def __init__(
        self,
        access_token: str,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the transport.

        Args:
            access_token: OAuth2 access token for the service account
            timeout: Request timeout in seconds
        """
        self._timeout = timeout
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._client = httpx.AsyncClient(
            timeout=timeout,
            verify=ssl_context,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        logger.debug("{} {}", method, url)
        try:
            response = await self._client.request(method, url, params=params, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = map_http_error(e.response.status_code, e.response)
            logger.warning("{} {} failed: {}", method, url, error)
            raise error from e
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e}") from e

        if not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    """Extract Google's error message from a response body."""
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.text


def map_http_error(status: int, response: httpx.Response) -> TransportError:
    """Convert an HTTP error status to the matching exception."""
    message = _error_message(response)
    if status == 401:
        return AuthenticationError("Invalid or expired access token")
    if status == 403:
        return AuthenticationError(
            f"Access denied: {message}. Check your scopes and sharing permissions."
        )
    if status == 404:
        return NotFoundError(
            "Resource not found. Check the ID and sharing permissions."
        )
    if status == 429:
        return QuotaExceededError()
    return APIError(f"API error ({status}): {message}", status_code=status)
