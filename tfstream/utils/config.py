"""
Configuration management for tfstream.

Values are layered in this order, later layers winning:
- config/default.yaml shipped with the repository
- an optional user YAML file
- environment variables
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_READ_CHUNK_SIZE = 1024 * 1024

_BUILTIN_DEFAULTS: Dict[str, Any] = {
    "record": {
        "read_chunk_size": DEFAULT_READ_CHUNK_SIZE,
        "flush_on_write": False,
        "fsync_on_flush": False,
    },
    "logging": {
        "level": "INFO",
        "format": "json",
        "output": "stdout",
        "configure_on_open": True,
    },
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


class Config:
    """Configuration manager for tfstream."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to a YAML configuration file. If None, only the
                defaults and environment are used.
        """
        self._config: Dict[str, Any] = self._deep_merge({}, _BUILTIN_DEFAULTS)
        self._load_default_config()

        if config_file:
            self._load_config_file(config_file)

        self._apply_env_overrides()

    def _load_default_config(self) -> None:
        """Load config/default.yaml if it is present."""
        default_config_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"
        if default_config_path.exists():
            self._load_config_file(str(default_config_path))

    def _load_config_file(self, config_file: str) -> None:
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML configuration file

        Raises:
            ValueError: If the file does not contain a mapping
        """
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f)

        if file_config is None:
            return
        if not isinstance(file_config, dict):
            raise ValueError(
                f"Configuration file must contain a mapping: {config_file}"
            )
        self._merge_config(file_config)

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        self._config = self._deep_merge(self._config, new_config)

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            base: Base dictionary
            override: Override dictionary

        Returns:
            Merged dictionary
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            elif isinstance(value, dict):
                result[key] = self._deep_merge({}, value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        if log_level := os.getenv("LOG_LEVEL"):
            self.set("logging.level", log_level)

        if chunk_size := os.getenv("TFSTREAM_READ_CHUNK_SIZE"):
            self.set("record.read_chunk_size", int(chunk_size))

        if flush := os.getenv("TFSTREAM_FLUSH_ON_WRITE"):
            self.set("record.flush_on_write", _parse_bool(flush))

        if fsync := os.getenv("TFSTREAM_FSYNC"):
            self.set("record.fsync_on_flush", _parse_bool(fsync))

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "record.read_chunk_size")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Return the configuration as a dictionary."""
        return self._deep_merge({}, self._config)


# Global configuration instance
_config: Optional[Config] = None


def get_config(config_file: Optional[str] = None) -> Config:
    """
    Get global configuration instance.

    Args:
        config_file: Optional configuration file path, used on first call

    Returns:
        Configuration instance
    """
    global _config
    if _config is None:
        _config = Config(config_file)
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
