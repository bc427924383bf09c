"""Configuration management for the token resolver.

Loads settings from environment variables, optionally overridden by a
YAML file with a top-level ``tokensync`` section:

    tokensync:
      type_key: "$type"
      value_key: "$value"
      figma_alias_extension: true
      memoize: true
      verify_determinism: false
      duplicate_types: [color]
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigurationError
from .types import KNOWN_TOKEN_TYPES

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(key: str, raw: Any) -> bool:
    """Interpret a config value as a boolean."""
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(key, f"expected a boolean, got {raw!r}")


@dataclass
class ResolverConfig:
    """Settings shared by the walker, graph builder and resolver."""

    # Reserved keys marking a leaf token
    type_key: str = "$type"
    value_key: str = "$value"

    # Treat $extensions["com.figma.aliasData"] as an alias declaration
    figma_alias_extension: bool = True

    # Cache resolved paths for the lifetime of one resolver
    memoize: bool = True

    # Re-resolve every path uncached and fail on any mismatch
    verify_determinism: bool = False

    # Token types considered by duplicate detection
    duplicate_types: list[str] = field(default_factory=lambda: ["color"])

    known_types: frozenset[str] = KNOWN_TOKEN_TYPES

    def __post_init__(self) -> None:
        for key in ("type_key", "value_key"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(key, "must be a non-empty string")
        if isinstance(self.duplicate_types, str):
            self.duplicate_types = [self.duplicate_types]
        self.known_types = frozenset(self.known_types)

    @classmethod
    def from_env(cls) -> "ResolverConfig":
        """Load configuration from environment variables."""
        kwargs: dict[str, Any] = {}
        if os.getenv("TOKENSYNC_TYPE_KEY"):
            kwargs["type_key"] = os.environ["TOKENSYNC_TYPE_KEY"]
        if os.getenv("TOKENSYNC_VALUE_KEY"):
            kwargs["value_key"] = os.environ["TOKENSYNC_VALUE_KEY"]
        if os.getenv("TOKENSYNC_FIGMA_ALIASES"):
            kwargs["figma_alias_extension"] = _parse_bool(
                "TOKENSYNC_FIGMA_ALIASES", os.environ["TOKENSYNC_FIGMA_ALIASES"]
            )
        if os.getenv("TOKENSYNC_MEMOIZE"):
            kwargs["memoize"] = _parse_bool("TOKENSYNC_MEMOIZE", os.environ["TOKENSYNC_MEMOIZE"])
        if os.getenv("TOKENSYNC_VERIFY"):
            kwargs["verify_determinism"] = _parse_bool(
                "TOKENSYNC_VERIFY", os.environ["TOKENSYNC_VERIFY"]
            )
        return cls(**kwargs)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "ResolverConfig":
        """
        Load configuration from environment variables and a YAML file.

        Args:
            config_path: Optional path to a YAML config file. Values in the
                         file override environment variables.

        Returns:
            ResolverConfig instance with loaded values

        Raises:
            ConfigurationError: If the file is unreadable or holds bad values
        """
        config = cls.from_env()
        if config_path is None:
            return config

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigurationError(str(config_path), "config file not found")
        except yaml.YAMLError as e:
            raise ConfigurationError(str(config_path), f"invalid YAML: {e}")

        section = data.get("tokensync", data) if isinstance(data, dict) else None
        if not isinstance(section, dict):
            raise ConfigurationError(str(config_path), "expected a mapping")

        logger.info(f"Loaded resolver config from {config_path}")
        return config.merged(section)

    def merged(self, overrides: dict[str, Any]) -> "ResolverConfig":
        """Return a copy with the given keys replaced."""
        known = {f.name for f in fields(self)}
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, raw in overrides.items():
            if key not in known:
                raise ConfigurationError(key, "unknown setting")
            if key in ("figma_alias_extension", "memoize", "verify_determinism"):
                raw = _parse_bool(key, raw)
            values[key] = raw
        return ResolverConfig(**values)


# Global config instance (lazy loaded)
_config: Optional[ResolverConfig] = None


def get_config() -> ResolverConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ResolverConfig.load()
    return _config


def reload_config(config_path: Optional[Path] = None) -> ResolverConfig:
    """Reload configuration from environment and optional YAML file."""
    global _config
    _config = ResolverConfig.load(config_path)
    return _config
