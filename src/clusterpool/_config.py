"""Configuration management for clusterpool.

Supports:
- Environment variables (CLUSTERPOOL_API_URL, CLUSTERPOOL_PROJECT, etc.)
- Config file (~/.clusterpool/config.toml)
- Programmatic configuration
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


DEFAULT_BASE_URL = "https://clusters.googleapis.com"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_REGION = "global"
DEFAULT_POOL_LIMIT = 2
DEFAULT_POOL_MAX_AGE_MINUTES = 30
DEFAULT_HEARTBEAT_MINUTES = 30

CONFIG_DIR = Path.home() / ".clusterpool"
CONFIG_FILE = CONFIG_DIR / "config.toml"


@dataclass
class PoolingDefaults:
    """Pool sizing defaults from the [pooling] section."""

    limit: int = DEFAULT_POOL_LIMIT
    max_age_minutes: int = DEFAULT_POOL_MAX_AGE_MINUTES
    heartbeat_minutes: int = DEFAULT_HEARTBEAT_MINUTES


@dataclass
class PoolConfig:
    """Client configuration."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    verify_ssl: bool = True
    debug: bool = False

    project: str | None = None
    region: str = DEFAULT_REGION
    client_id: str | None = None

    pooling: PoolingDefaults = field(default_factory=PoolingDefaults)

    @classmethod
    def from_env(cls) -> PoolConfig:
        """Load configuration from environment variables."""
        return cls(
            base_url=os.getenv("CLUSTERPOOL_API_URL", DEFAULT_BASE_URL),
            timeout=float(os.getenv("CLUSTERPOOL_TIMEOUT", DEFAULT_TIMEOUT)),
            max_retries=int(os.getenv("CLUSTERPOOL_MAX_RETRIES", DEFAULT_MAX_RETRIES)),
            verify_ssl=os.getenv("CLUSTERPOOL_VERIFY_SSL", "true").lower()
            not in ("0", "false", "no"),
            debug=os.getenv("CLUSTERPOOL_DEBUG", "").lower() in ("1", "true", "yes"),
            project=os.getenv("CLUSTERPOOL_PROJECT"),
            region=os.getenv("CLUSTERPOOL_REGION", DEFAULT_REGION),
            client_id=os.getenv("CLUSTERPOOL_CLIENT_ID"),
            pooling=PoolingDefaults(
                limit=int(os.getenv("CLUSTERPOOL_POOL_LIMIT", DEFAULT_POOL_LIMIT)),
                max_age_minutes=int(
                    os.getenv("CLUSTERPOOL_POOL_MAX_AGE", DEFAULT_POOL_MAX_AGE_MINUTES)
                ),
            ),
        )

    @classmethod
    def from_file(cls, path: Path | None = None) -> PoolConfig:
        """Load configuration from TOML file."""
        config_path = path or CONFIG_FILE

        if not config_path.exists():
            return cls()

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        pooling_data = data.get("pooling", {})
        pooling = PoolingDefaults(
            limit=int(pooling_data.get("limit", DEFAULT_POOL_LIMIT)),
            max_age_minutes=int(pooling_data.get("max_age_minutes", DEFAULT_POOL_MAX_AGE_MINUTES)),
            heartbeat_minutes=int(
                pooling_data.get("heartbeat_minutes", DEFAULT_HEARTBEAT_MINUTES)
            ),
        )

        return cls(
            base_url=data.get("api_url", DEFAULT_BASE_URL),
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
            max_retries=int(data.get("max_retries", DEFAULT_MAX_RETRIES)),
            verify_ssl=data.get("verify_ssl", True),
            debug=data.get("debug", False),
            project=data.get("project"),
            region=data.get("region", DEFAULT_REGION),
            client_id=data.get("client_id"),
            pooling=pooling,
        )

    @classmethod
    def load(cls) -> PoolConfig:
        """Load configuration with precedence: env > file > defaults."""
        config = cls.from_file()
        env_config = cls.from_env()

        if os.getenv("CLUSTERPOOL_API_URL"):
            config.base_url = env_config.base_url
        if os.getenv("CLUSTERPOOL_TIMEOUT"):
            config.timeout = env_config.timeout
        if os.getenv("CLUSTERPOOL_MAX_RETRIES"):
            config.max_retries = env_config.max_retries
        if os.getenv("CLUSTERPOOL_VERIFY_SSL"):
            config.verify_ssl = env_config.verify_ssl
        if os.getenv("CLUSTERPOOL_DEBUG"):
            config.debug = env_config.debug
        if env_config.project:
            config.project = env_config.project
        if os.getenv("CLUSTERPOOL_REGION"):
            config.region = env_config.region
        if env_config.client_id:
            config.client_id = env_config.client_id
        if os.getenv("CLUSTERPOOL_POOL_LIMIT"):
            config.pooling.limit = env_config.pooling.limit
        if os.getenv("CLUSTERPOOL_POOL_MAX_AGE"):
            config.pooling.max_age_minutes = env_config.pooling.max_age_minutes

        return config


def get_config_dir() -> Path:
    """Get or create the config directory."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


def save_config(config: dict[str, Any], path: Path | None = None) -> None:
    """Save configuration to TOML file.

    The file is written with 0o600 permissions.
    """
    import tomli_w

    config_path = path or CONFIG_FILE
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    config_path.chmod(0o600)


def get_config_value(key: str) -> Any:
    """Get a single config value.

    Dotted keys address the [pooling] table, e.g. ``pooling.limit``.
    """
    config = PoolConfig.load()
    key_mapping = {
        "api_url": "base_url",
    }
    if key.startswith("pooling."):
        return getattr(config.pooling, key.split(".", 1)[1], None)
    attr_name = key_mapping.get(key, key)
    return getattr(config, attr_name, None)


def set_config_value(key: str, value: Any) -> None:
    """Set a single config value in the config file."""
    config_path = CONFIG_FILE

    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    else:
        data = {}

    if key.startswith("pooling."):
        data.setdefault("pooling", {})[key.split(".", 1)[1]] = value
    else:
        data[key] = value
    save_config(data, config_path)
