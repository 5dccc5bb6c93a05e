"""JSON-based configuration persistence via platformdirs, with environment overrides."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "sprint-report-generator"
CONFIG_FILENAME = "config.json"

_DEFAULTS: dict[str, Any] = {
    "jira_url": "",               # e.g. "https://company.atlassian.net"
    "jira_email": "",
    "jira_board_id": 0,
    "jira_artifact_field": "",    # custom field holding the demo artifact link
    "jira_story_points_field": "customfield_10016",
    "openai_model": "gpt-4o-mini",
    "notion_parent_page_id": "",
    "language": "en",
    "demo_count": 3,
    "mock_mode": False,
    "output_dir": "",
}

# env var -> (config key, type)
_ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "JIRA_BASE_URL": ("jira_url", str),
    "JIRA_EMAIL": ("jira_email", str),
    "JIRA_BOARD_ID": ("jira_board_id", int),
    "JIRA_ARTIFACT_FIELD_ID": ("jira_artifact_field", str),
    "JIRA_STORY_POINTS_FIELD_ID": ("jira_story_points_field", str),
    "OPENAI_MODEL": ("openai_model", str),
    "NOTION_PARENT_PAGE_ID": ("notion_parent_page_id", str),
    "REPORT_LANGUAGE": ("language", str),
    "MOCK_MODE": ("mock_mode", bool),
}

_TRUE_VALUES = {"1", "true", "yes", "on"}

# settings a live run cannot do without; secrets are checked by AuthManager
_REQUIRED_FOR_LIVE = ("jira_url", "jira_email", "notion_parent_page_id")


class ConfigManager:
    """Read/write JSON configuration stored in the platform config directory.

    Environment variables listed in ``_ENV_OVERRIDES`` take precedence over
    stored values and are never written back to disk.
    """

    def __init__(self) -> None:
        self._dir = Path(user_config_dir(APP_NAME, appauthor=False))
        self._path = self._dir / CONFIG_FILENAME
        self._data: dict[str, Any] = dict(_DEFAULTS)
        self._load()
        logger.debug("Config loaded from %s", self._path)

    # -- public API -----------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return a config value (environment first), falling back to *default*."""
        env = _env_overrides()
        if key in env:
            return env[key]
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a config value and persist to disk."""
        self._data[key] = value
        self._save()

    def update(self, values: dict[str, Any]) -> None:
        """Bulk-update config values and persist."""
        self._data.update(values)
        self._save()

    def reset(self) -> None:
        """Reset all values to defaults and persist."""
        logger.info("Resetting config to defaults")
        self._data = dict(_DEFAULTS)
        self._save()

    @property
    def data(self) -> dict[str, Any]:
        """Return the effective configuration (stored values plus overrides)."""
        merged = dict(self._data)
        merged.update(_env_overrides())
        return merged

    @property
    def path(self) -> Path:
        return self._path

    @property
    def mock_mode(self) -> bool:
        return bool(self.get("mock_mode"))

    @property
    def language(self) -> str:
        return str(self.get("language") or _DEFAULTS["language"])

    @property
    def demo_count(self) -> int:
        """Number of demo issues to pick; invalid or negative values use the default."""
        try:
            count = int(self.get("demo_count"))
        except (TypeError, ValueError):
            return _DEFAULTS["demo_count"]
        return count if count >= 0 else _DEFAULTS["demo_count"]

    @property
    def board_id(self) -> int | None:
        try:
            board = int(self.get("jira_board_id") or 0)
        except (TypeError, ValueError):
            return None
        return board or None

    def missing_settings(self) -> list[str]:
        """Return the settings a live (non-mock) run still needs."""
        return [key for key in _REQUIRED_FOR_LIVE if not self.get(key)]

    # -- internals ------------------------------------------------------------

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path, encoding="utf-8") as fh:
                stored = json.load(fh)
            if isinstance(stored, dict):
                self._data.update(stored)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to load config from %s: %s", self._path, exc)

    def _save(self) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2, default=str)
        except OSError as exc:
            logger.warning("Failed to save config to %s: %s", self._path, exc)


def _env_overrides() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for var, (key, kind) in _ENV_OVERRIDES.items():
        raw = os.environ.get(var)
        if raw is None or raw == "":
            continue
        if kind is bool:
            values[key] = raw.strip().lower() in _TRUE_VALUES
        elif kind is int:
            try:
                values[key] = int(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not an integer", var, raw)
        else:
            values[key] = raw.strip()
    return values
