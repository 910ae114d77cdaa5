"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the server entrypoint and
the administrative scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class DatabaseSettings(BaseSettings):
    """Location of the relational store backing OAuth state and integrations."""

    path: str = Field(
        "data/event_listener.db",
        description="Filesystem path of the SQLite database file.",
    )

    model_config = SettingsConfigDict(env_prefix="EVENT_LISTENER_DB_")


class SlackSettings(BaseSettings):
    """Endpoints and callback configuration for the Slack OAuth v2 flow."""

    authorize_url: AnyHttpUrl = Field("https://slack.com/oauth/v2/authorize")
    token_url: AnyHttpUrl = Field("https://slack.com/api/oauth.v2.access")
    redirect_uri: AnyHttpUrl = Field(
        "https://slack.holmosapien.com/authorization",
        description="Callback URI registered with every Slack app.",
    )
    timeout: float = Field(
        10.0,
        description="Seconds to wait on the token endpoint before giving up.",
    )

    model_config = SettingsConfigDict(env_prefix="EVENT_LISTENER_SLACK_")


class ServerSettings(BaseSettings):
    """Listener configuration for the uvicorn server."""

    host: str = Field("0.0.0.0")
    port: int = Field(18075)
    certificate_path: Optional[str] = Field(
        None,
        description="PEM certificate; TLS is enabled only when a key is also set.",
    )
    key_path: Optional[str] = Field(None)

    model_config = SettingsConfigDict(env_prefix="EVENT_LISTENER_")

    @property
    def tls_enabled(self) -> bool:
        return bool(self.certificate_path and self.key_path)


class AppSettings(BaseSettings):
    """Root settings object for the event listener."""

    log_level: str = Field("INFO")
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    model_config = SettingsConfigDict(env_prefix="EVENT_LISTENER_")


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "ServerSettings",
    "SlackSettings",
    "get_settings",
]
