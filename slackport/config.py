"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_config_dir() -> Path:
    """Per-user directory searched for ``config.yaml``."""
    override = os.environ.get("SLACKPORT_CONFIG_DIR")
    if override:
        return Path(override)
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")) / "slackport"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "slackport"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "slackport"


class SlackAppConfig(BaseModel):
    """One Slack app installation and its tokens."""
    app_id: str
    client_id: str
    context_id: str = ""
    bot_token: str = ""
    app_token: str = ""


class ServerConfig(BaseModel):
    bind: str = "0.0.0.0"
    port: int = 8085
    path_prefix: str = "/slack"
    # Externally reachable base URL (origin plus optional path prefix) used for
    # attachment proxy URLs; falls back to the inbound request's origin when empty.
    public_url: str = ""
    # Hosts the attachment proxy may fetch from with the bot token
    attachment_hosts: list[str] = Field(default_factory=lambda: ["files.slack.com"])
    response_body: dict[str, Any] = Field(default_factory=dict)
    # Slack app signing secret; signatures are not checked when empty
    signing_secret: str = ""


class SlackConfig(BaseModel):
    hook: str = "slackIn"
    namespace: str = "slack"
    base_url: str = "https://slack.com/api/"
    timeout: float = 30.0
    bot_platforms: list[str] = Field(default_factory=lambda: ["dialogflow"])
    apps: list[SlackAppConfig] = Field(default_factory=list)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SLACKPORT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    log_level: str = "INFO"
    log_json: bool = False


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("SLACKPORT_CONFIG")
    if config_path is None:
        default = default_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # Build settings from YAML values plus SLACKPORT_* env vars
    return Settings(**yaml_data)
