"""API secrets: environment first, then the OS keyring."""

from __future__ import annotations

import logging
import os

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from sprint_report_generator.services.config_manager import ConfigManager

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "sprint-report-generator"

JIRA_TOKEN = "jira_api_token"
OPENAI_KEY = "openai_api_key"
NOTION_KEY = "notion_api_key"

# secret name -> environment variable
SECRETS: dict[str, str] = {
    JIRA_TOKEN: "JIRA_API_TOKEN",
    OPENAI_KEY: "OPENAI_API_KEY",
    NOTION_KEY: "NOTION_API_KEY",
}


class AuthManager:
    """Look up API secrets for Jira, OpenAI and Notion.

    Secrets are read from the environment when set there, otherwise from
    the OS keyring.  Non-secret connection data lives in :class:`ConfigManager`.
    """

    def __init__(self, config: ConfigManager) -> None:
        self._config = config

    # -- connection data ------------------------------------------------------

    @property
    def jira_url(self) -> str:
        return str(self._config.get("jira_url", "")).rstrip("/")

    @property
    def jira_email(self) -> str:
        return str(self._config.get("jira_email", ""))

    @property
    def jira_configured(self) -> bool:
        return bool(self.jira_url and self.jira_email and self.get_secret(JIRA_TOKEN))

    # -- secrets --------------------------------------------------------------

    def get_secret(self, name: str) -> str | None:
        """Return a secret by name, or ``None`` when it is not available."""
        env_var = SECRETS[name]
        value = os.environ.get(env_var)
        if value:
            return value
        try:
            return keyring.get_password(KEYRING_SERVICE, name)
        except KeyringError as exc:
            logger.warning("Keyring lookup for %s failed: %s", name, exc)
            return None

    def store_secret(self, name: str, value: str) -> None:
        """Save a secret in the OS keyring."""
        if name not in SECRETS:
            raise KeyError(f"Unknown secret {name!r}; expected one of {sorted(SECRETS)}")
        keyring.set_password(KEYRING_SERVICE, name, value)
        logger.info("Stored %s in keyring", name)

    def clear_secrets(self) -> None:
        """Remove every stored secret from the keyring."""
        logger.info("Clearing stored secrets")
        for name in SECRETS:
            try:
                keyring.delete_password(KEYRING_SERVICE, name)
            except PasswordDeleteError:
                pass
