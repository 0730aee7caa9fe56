"""Configuration and working-context persistence using pydantic-settings.

Settings are read from ``SHEETFREAK_*`` environment variables layered over
``~/.sheetfreak/config.json``. The current working spreadsheet is kept in
``~/.sheetfreak/context.json``.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from sheetfreak.exceptions import InvalidInputError

CONFIG_DIR_ENV = "SHEETFREAK_CONFIG_DIR"
DEFAULT_CONFIG_DIR = Path.home() / ".sheetfreak"
CONFIG_FILENAME = "config.json"
CONTEXT_FILENAME = "context.json"


class Settings(BaseSettings):
    """Effective settings: environment variables override config.json."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETFREAK_",
        case_sensitive=False,
        extra="ignore",
    )

    credentials_path: str | None = None
    default_spreadsheet: str | None = None
    output_format: Literal["table", "json", "csv"] = "table"
    verbose_errors: bool = False
    log_level: str = "WARNING"
    log_json: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # config.json values arrive as init kwargs; the environment wins.
        return env_settings, init_settings


SETTING_KEYS = tuple(Settings.model_fields)


def get_config_dir() -> Path:
    """Return the config directory, honouring SHEETFREAK_CONFIG_DIR."""
    override = os.environ.get(CONFIG_DIR_ENV)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_DIR


class ConfigManager:
    """Reads and writes sheetfreak's config and context files."""

    def __init__(self, config_dir: str | Path | None = None) -> None:
        self._config_dir = Path(config_dir) if config_dir else get_config_dir()

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def config_path(self) -> Path:
        return self._config_dir / CONFIG_FILENAME

    @property
    def context_path(self) -> Path:
        return self._config_dir / CONTEXT_FILENAME

    # --- config.json ---

    def load_file(self) -> dict[str, Any]:
        """Return the raw contents of config.json (empty if missing)."""
        return self._read_json(self.config_path)

    def settings(self) -> Settings:
        """Return effective settings (environment over config.json)."""
        file_values = {
            key: value for key, value in self.load_file().items() if key in SETTING_KEYS
        }
        try:
            return Settings(**file_values)
        except ValidationError as e:
            raise InvalidInputError(
                f"Invalid configuration in {self.config_path}: {e}"
            ) from e

    def get(self, key: str) -> Any:
        if key not in SETTING_KEYS:
            raise InvalidInputError(
                f"Unknown config key: {key}. Known keys: {', '.join(SETTING_KEYS)}"
            )
        return getattr(self.settings(), key)

    def set(self, key: str, value: Any) -> None:
        """Persist a single key to config.json, merging with existing keys."""
        if key not in SETTING_KEYS:
            raise InvalidInputError(
                f"Unknown config key: {key}. Known keys: {', '.join(SETTING_KEYS)}"
            )
        data = self.load_file()
        data[key] = value
        try:
            Settings(**{k: v for k, v in data.items() if k in SETTING_KEYS})
        except ValidationError as e:
            raise InvalidInputError(f"Invalid value for {key}: {value!r}") from e
        self._write_json(self.config_path, data)

    def get_credentials_path(self) -> str | None:
        return self.settings().credentials_path

    def set_credentials_path(self, path: str | Path) -> None:
        self.set("credentials_path", str(Path(path).expanduser().resolve()))

    # --- context.json ---

    def set_context(self, spreadsheet_id: str) -> dict[str, str]:
        context = {
            "currentSpreadsheet": spreadsheet_id,
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
        self._write_json(self.context_path, context)
        return context

    def get_context(self) -> dict[str, Any]:
        return self._read_json(self.context_path)

    def get_current_spreadsheet(self) -> str | None:
        """Return the context spreadsheet, falling back to default_spreadsheet."""
        current = self.get_context().get("currentSpreadsheet")
        return current or self.settings().default_spreadsheet

    # --- helpers ---

    def _read_json(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise InvalidInputError(f"Expected a JSON object in {path}")
        return data

    def _write_json(self, path: Path, data: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2))
