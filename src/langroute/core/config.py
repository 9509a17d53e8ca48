"""Configuration management module for the router.

This module handles loading and validating configuration from multiple sources:
- Configuration files (YAML)
- Environment variables
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class RouterConfig(BaseModel):
    """Route table and URL building configuration."""

    controller_label: str = Field(default="__", description="Key holding the controller reference")
    options_label: str = Field(default="options", description="Key holding the option bag")
    methods_label: str = Field(
        default="methods", description="Option key holding the space separated method list"
    )
    base_path: str = Field(default="", description="Path prefix applied to every route")
    default_lang: str = Field(default="", description="Language used before any route is matched")
    base_url: str | None = Field(
        default=None, description="Scheme and host for full URLs (built from the request if unset)"
    )
    sources: list[str] = Field(default_factory=list, description="Route definition files")

    @field_validator("controller_label", "options_label", "methods_label")
    @classmethod
    def validate_label(cls, v: str) -> str:
        """Validate reserved labels are not empty."""
        if not v.strip():
            raise ValueError("Reserved labels must not be empty")
        return v

    @field_validator("sources")
    @classmethod
    def validate_sources(cls, v: list[str]) -> list[str]:
        """Validate route sources are YAML or JSON files."""
        for source in v:
            if Path(source).suffix.lower() not in (".yml", ".yaml", ".json"):
                raise ValueError(f"Unsupported route source: {source}. Must be YAML or JSON")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format (json or text)")
    output: str = Field(default="stdout", description="Log output (stdout, stderr or file path)")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is valid."""
        if v.lower() not in ("json", "text"):
            raise ValueError(f"Invalid log format: {v}. Must be json or text")
        return v.lower()


class MetricsConfig(BaseModel):
    """Metrics configuration."""

    enabled: bool = Field(default=True, description="Enable metrics collection")
    namespace: str = Field(default="langroute", description="Prefix of metric names")


class CacheConfig(BaseModel):
    """Compiled route table cache configuration."""

    enabled: bool = Field(default=False, description="Cache the compiled route table")
    store_url: str = Field(
        default="redis://localhost:6379/0", description="Route table store connection URL"
    )
    key: str = Field(default="routes", description="Key of the cached table")
    ttl: int | None = Field(default=None, ge=1, description="Cache TTL in seconds (none = forever)")


class LangrouteConfig(BaseModel):
    """Main configuration."""

    environment: str = Field(default="development", description="Environment name")
    router: RouterConfig = Field(default_factory=RouterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


class ConfigLoader:
    """Loads and validates configuration from multiple sources."""

    def __init__(self, config_path: str | None = None):
        """Initialize the configuration loader.

        Args:
            config_path: Path to configuration file. If None, uses environment variable
                        LANGROUTE_CONFIG_PATH or defaults to config/langroute.yaml
        """
        self.config_path = self._resolve_config_path(config_path)

    def _resolve_config_path(self, config_path: str | None) -> Path:
        """Resolve configuration file path."""
        if config_path:
            return Path(config_path)

        env_path = os.getenv("LANGROUTE_CONFIG_PATH")
        if env_path:
            return Path(env_path)

        env = os.getenv("LANGROUTE_ENV", "development")
        env_specific = Path(f"config/langroute.{env}.yaml")
        if env_specific.exists():
            return env_specific

        return Path("config/langroute.yaml")

    def load(self) -> LangrouteConfig:
        """Load and validate configuration.

        Returns:
            Validated LangrouteConfig instance

        Raises:
            ValueError: If configuration is invalid
        """
        config_dict = self._load_from_file()
        config_dict = self._override_from_env(config_dict)

        try:
            config = LangrouteConfig(**config_dict)
        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

        return config

    def _load_from_file(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        with open(self.config_path) as f:
            config_dict = yaml.safe_load(f) or {}

        # Route sources are relative to the configuration file
        sources = config_dict.get("router", {}).get("sources")
        if sources:
            base = self.config_path.parent
            config_dict["router"]["sources"] = [
                str(base / source) if not Path(source).is_absolute() else source
                for source in sources
            ]

        return config_dict

    def _override_from_env(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Override configuration with environment variables.

        Environment variables follow the pattern: LANGROUTE_<SECTION>_<KEY>
        For example: LANGROUTE_ROUTER_BASE_PATH=fr
        """
        # Router config
        if base_path := os.getenv("LANGROUTE_ROUTER_BASE_PATH"):
            config_dict.setdefault("router", {})["base_path"] = base_path
        if default_lang := os.getenv("LANGROUTE_ROUTER_DEFAULT_LANG"):
            config_dict.setdefault("router", {})["default_lang"] = default_lang
        if base_url := os.getenv("LANGROUTE_ROUTER_BASE_URL"):
            config_dict.setdefault("router", {})["base_url"] = base_url
        if sources := os.getenv("LANGROUTE_ROUTER_SOURCES"):
            config_dict.setdefault("router", {})["sources"] = [
                source.strip() for source in sources.split(",") if source.strip()
            ]

        # Logging config
        if log_level := os.getenv("LANGROUTE_LOG_LEVEL"):
            config_dict.setdefault("logging", {})["level"] = log_level
        if log_format := os.getenv("LANGROUTE_LOG_FORMAT"):
            config_dict.setdefault("logging", {})["format"] = log_format

        # Cache config
        if store_url := os.getenv("LANGROUTE_CACHE_STORE_URL"):
            config_dict.setdefault("cache", {})["store_url"] = store_url
        if cache_enabled := os.getenv("LANGROUTE_CACHE_ENABLED"):
            config_dict.setdefault("cache", {})["enabled"] = cache_enabled.lower() == "true"

        # Environment
        if env := os.getenv("LANGROUTE_ENV"):
            config_dict["environment"] = env

        return config_dict


def load_config(config_path: str | None = None) -> LangrouteConfig:
    """Load configuration (convenience function).

    Args:
        config_path: Optional path to configuration file

    Returns:
        Validated LangrouteConfig instance
    """
    loader = ConfigLoader(config_path)
    return loader.load()
