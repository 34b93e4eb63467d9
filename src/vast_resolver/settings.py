"""Settings management for the VAST resolver.

Provides pydantic-based settings with:
- Environment variable overrides (``VAST_RESOLVER_*``)
- Optional YAML configuration file loading
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import VastConfigError


class ResolverSettings(BaseSettings):
    """VAST resolver settings."""

    model_config = SettingsConfigDict(env_prefix="VAST_RESOLVER_", extra="allow")

    wrapper_limit: int = 10
    fetch_timeout: float = 10.0
    ssl_verify: bool = True
    headers: dict[str, str] = Field(default_factory=dict)

    tracking_timeout: float = 5.0
    tracking_verify_ssl: bool = False

    parser: dict[str, Any] = Field(default_factory=dict)
    tracker: dict[str, Any] = Field(default_factory=dict)


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """Read the ``vast_resolver`` section (or the whole file) from YAML."""
    try:
        with open(config_path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as e:
        raise VastConfigError(
            f"Failed to load settings file: {e}", context={"path": str(config_path)}
        ) from e

    if not isinstance(data, dict):
        raise VastConfigError(
            "Settings file must contain a mapping", context={"path": str(config_path)}
        )
    section = data.get("vast_resolver", data)
    return section if isinstance(section, dict) else {}


class _YamlSettings(ResolverSettings):
    """Settings where values from YAML rank below environment variables."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> ResolverSettings:
    """Load settings from environment variables and an optional YAML file.

    Args:
        config_path: Optional YAML file; environment variables override it

    Returns:
        ResolverSettings instance
    """
    if config_path is None:
        return ResolverSettings()
    return _YamlSettings(**_read_yaml(Path(config_path)))


@lru_cache
def get_settings(config_path: Path | None = None) -> ResolverSettings:
    """Get cached settings instance.

    Args:
        config_path: Optional config file path

    Returns:
        ResolverSettings instance
    """
    return load_settings(config_path)


__all__ = ["ResolverSettings", "load_settings", "get_settings"]
