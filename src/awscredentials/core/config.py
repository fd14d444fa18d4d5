# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Settings for awscredentials.

Settings are read from a YAML file, by default
``~/.config/awscredentials/config.yaml``, and may be overridden by
environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import yaml

from awscredentials.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV = "AWSCREDENTIALS_CONFIG"
STORE_ENV = "AWSCREDENTIALS_STORE"
VALIDATE_ENV = "AWSCREDENTIALS_VALIDATE_AGAINST_AWS"

DEFAULT_ROLE_SESSION_NAME = "Jenkins"


def get_config_dir() -> Path:
    """Get the directory holding the settings file and credentials store."""
    return Path.home() / ".config" / "awscredentials"


@dataclass
class ProxyConfig:
    """HTTP proxy used for AWS API calls."""
    host: str
    port: int = 0
    username: Optional[str] = None
    password: Optional[str] = None

    def to_url(self) -> str:
        auth = ""
        if self.username:
            auth = quote(self.username, safe="")
            if self.password:
                auth += ":" + quote(self.password, safe="")
            auth += "@"
        port = f":{self.port}" if self.port else ""
        return f"http://{auth}{self.host}{port}"

    def to_proxies(self) -> Dict[str, str]:
        """Proxy mapping in the form botocore's ``Config(proxies=...)`` expects."""
        url = self.to_url()
        return {"http": url, "https": url}


@dataclass
class Settings:
    """Global settings."""
    validate_against_aws: bool = True
    store_path: Path = field(default_factory=lambda: get_config_dir() / "credentials.yaml")
    default_region: Optional[str] = None
    role_session_name: str = DEFAULT_ROLE_SESSION_NAME
    proxy: Optional[ProxyConfig] = None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _build_settings(data: Dict[str, Any]) -> Settings:
    settings = Settings()

    if "validate_against_aws" in data:
        settings.validate_against_aws = bool(data["validate_against_aws"])
    if data.get("store_path"):
        settings.store_path = Path(data["store_path"]).expanduser()
    if data.get("default_region"):
        settings.default_region = str(data["default_region"])
    if data.get("role_session_name"):
        settings.role_session_name = str(data["role_session_name"])

    proxy = data.get("proxy")
    if proxy:
        if not isinstance(proxy, dict) or not proxy.get("host"):
            raise ConfigError("Proxy configuration requires a 'host'")
        try:
            settings.proxy = ProxyConfig(
                host=str(proxy["host"]),
                port=int(proxy.get("port") or 0),
                username=proxy.get("username"),
                password=proxy.get("password"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid proxy configuration: {e}") from e

    return settings


def _apply_env_overrides(settings: Settings) -> None:
    if val := os.environ.get(STORE_ENV):
        settings.store_path = Path(val).expanduser()
    if val := os.environ.get(VALIDATE_ENV):
        settings.validate_against_aws = _parse_bool(val)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        config_path: Optional path to a settings file. If None, the path from
            ``AWSCREDENTIALS_CONFIG`` or the default location is used.

    Returns:
        Settings with environment overrides applied.

    Raises:
        ConfigError: If an explicitly given file does not exist or cannot be parsed.
    """
    explicit = config_path is not None
    if config_path is None and os.environ.get(CONFIG_ENV):
        config_path = Path(os.environ[CONFIG_ENV])
        explicit = True
    if config_path is None:
        config_path = get_config_dir() / "config.yaml"

    data: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read settings from {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {config_path} must contain a mapping")
        logger.debug(f"Loaded settings from {config_path}")
    elif explicit:
        raise ConfigError(f"Settings file not found: {config_path}")

    settings = _build_settings(data)
    _apply_env_overrides(settings)
    return settings
