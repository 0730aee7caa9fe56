"""Service account credentials for Google API access.

Loads a service-account JSON key with google-auth and exchanges it for a
short-lived access token. Tokens are cached in the OS keyring (macOS Keychain,
Windows Credential Locker, or Linux Secret Service) so that consecutive
commands do not each pay for a token refresh.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import google.auth.exceptions
import keyring
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from keyring.errors import KeyringError
from loguru import logger

from sheetfreak.exceptions import AuthenticationError

DEFAULT_SCOPES = (
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/script.projects",
)

# Keyring service name for cached tokens; the username is the account email
KEYRING_SERVICE = "sheetfreak"


@dataclass
class Token:
    """Access token for Google API calls.

    Attributes:
        access_token: The OAuth2 access token for API calls.
        service_account_email: Email of the service account.
        expires_at: Unix timestamp when the token expires.
    """

    access_token: str
    service_account_email: str
    expires_at: float

    def is_valid(self, buffer_seconds: int = 60) -> bool:
        """Check if token is still valid with a safety buffer."""
        return time.time() < self.expires_at - buffer_seconds

    def expires_in_seconds(self) -> int:
        return max(0, int(self.expires_at - time.time()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "service_account_email": self.service_account_email,
            "expires_at": self.expires_at,
            "token_type": "Bearer",
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Token:
        return cls(
            access_token=data["access_token"],
            service_account_email=data.get("service_account_email", ""),
            expires_at=data["expires_at"],
        )


class ServiceAccountAuth:
    """Service-account authentication.

    Args:
        credentials_path: Path to the service account JSON key file.
        scopes: OAuth scopes to request.
        cache_tokens: Cache access tokens in the OS keyring.

    Raises:
        AuthenticationError: If the key file is missing or is not a
            service-account key.
    """

    def __init__(
        self,
        credentials_path: str | Path,
        scopes: tuple[str, ...] | list[str] = DEFAULT_SCOPES,
        cache_tokens: bool = False,
    ) -> None:
        self._path = Path(credentials_path).expanduser()
        self._scopes = list(scopes)
        self._cache_tokens = cache_tokens
        self._info = self._load_key_file()

    @property
    def credentials_path(self) -> Path:
        return self._path

    @property
    def service_account_email(self) -> str:
        return str(self._info["client_email"])

    def _load_key_file(self) -> dict[str, Any]:
        if not self._path.exists():
            raise AuthenticationError(
                f"Credentials file not found: {self._path}", {"path": str(self._path)}
            )
        try:
            info = json.loads(self._path.read_text())
        except json.JSONDecodeError as e:
            raise AuthenticationError(
                f"Failed to parse credentials file: {e}", {"path": str(self._path)}
            ) from e
        if not isinstance(info, dict) or info.get("type") != "service_account":
            raise AuthenticationError(
                "Credentials file is not a service account key",
                {"path": str(self._path)},
            )
        for key in ("client_email", "private_key"):
            if not info.get(key):
                raise AuthenticationError(f"Credentials file is missing {key}")
        return info

    def account_info(self) -> dict[str, Any]:
        """Return the account email, project and scopes without network access."""
        return {
            "email": self.service_account_email,
            "project_id": self._info.get("project_id", ""),
            "scopes": list(self._scopes),
        }

    def get_token(self, force_refresh: bool = False) -> Token:
        """Get a valid access token, refreshing it if necessary.

        Raises:
            AuthenticationError: If Google rejects the key.
        """
        if not force_refresh:
            cached = self._load_cached_token()
            if cached is not None:
                logger.debug(
                    "Using cached token (expires in {} seconds)", cached.expires_in_seconds()
                )
                return cached

        logger.debug("Loading credentials from {}", self._path)
        try:
            credentials = service_account.Credentials.from_service_account_info(
                self._info, scopes=self._scopes
            )
            credentials.refresh(Request())
        except (ValueError, google.auth.exceptions.GoogleAuthError) as e:
            raise AuthenticationError(f"Failed to authorize with Google: {e}") from e

        token = Token(
            access_token=credentials.token,
            service_account_email=credentials.service_account_email,
            expires_at=credentials.expiry.timestamp() if credentials.expiry else 0,
        )
        self._save_token(token)
        logger.debug("Token expires in {} seconds", token.expires_in_seconds())
        return token

    def _load_cached_token(self) -> Token | None:
        """Load the cached token from the OS keyring if it is still valid."""
        if not self._cache_tokens:
            return None
        try:
            token_json = keyring.get_password(KEYRING_SERVICE, self.service_account_email)
        except KeyringError as e:
            logger.warning("Keyring unavailable, not using cached token: {}", e)
            return None
        if not token_json:
            return None
        try:
            token = Token.from_dict(json.loads(token_json))
        except (json.JSONDecodeError, KeyError) as e:
            logger.warning("Ignoring invalid cached token: {}", e)
            return None
        if token.service_account_email != self.service_account_email:
            return None
        if not token.is_valid():
            logger.debug("Cached token expired")
            return None
        return token

    def _save_token(self, token: Token) -> None:
        """Save the token to the OS keyring, keyed by service account email."""
        if not self._cache_tokens:
            return
        try:
            keyring.set_password(
                KEYRING_SERVICE, self.service_account_email, json.dumps(token.to_dict())
            )
        except KeyringError as e:
            logger.warning("Keyring unavailable, token not cached: {}", e)
            return
        logger.debug("Token saved to OS keyring")

