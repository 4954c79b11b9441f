"""
metaddr Configuration System

Layered configuration with YAML files, environment variables and
validation.

Configuration Sources (in order of precedence):
    1. Environment variables (METADDR_*)
    2. Runtime overrides (ConfigManager.set)
    3. Project config file (./metaddr.yaml)
    4. User config file (~/.metaddr/config.yaml)
    5. Default values

The CLI loads the default files on every run; an explicit --config file
is applied on top of them.

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

import os
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import yaml

from metaddr.observability import Layer, get_logger
from metaddr.schema import CONFIG_SCHEMA, validate_against_schema

T = TypeVar("T")

_log = get_logger("config", Layer.CONFIG)

_HRP_RE = re.compile(r"[a-z0-9]{1,83}")


class ConfigError(Exception):
    """Configuration error."""
    pass


class ValidationError(ConfigError):
    """Configuration validation error."""
    pass


@dataclass
class ConfigValue(Generic[T]):
    """
    A single configuration value with metadata.

    Supports default values, environment variable binding and validation.
    """
    default: T
    env_var: Optional[str] = None
    description: str = ""
    validator: Optional[Callable[[T], bool]] = None
    _value: Optional[T] = field(default=None, repr=False)

    def get(self) -> T:
        """Get the current value."""
        if self.env_var and self.env_var in os.environ:
            value = self._coerce(os.environ[self.env_var])
            if self.validator and not self.validator(value):
                raise ValidationError(f"Invalid value for config in {self.env_var}: {value!r}")
            return value
        return self._value if self._value is not None else self.default

    def set(self, value: T) -> None:
        """Set the value with validation."""
        if isinstance(value, str) and not isinstance(self.default, str):
            value = self._coerce(value)
        if self.validator and not self.validator(value):
            raise ValidationError(f"Invalid value for config: {value!r}")
        self._value = value

    def reset(self) -> None:
        self._value = None

    def _coerce(self, value: str) -> T:
        """Coerce string value to target type."""
        target_type = type(self.default)

        if target_type == bool:
            return value.lower() in ("true", "1", "yes", "on")  # type: ignore
        elif target_type == int:
            try:
                return int(value)  # type: ignore
            except ValueError as e:
                raise ValidationError(f"Invalid integer for config: {value!r}") from e
        else:
            return value  # type: ignore


@dataclass
class AccountConfig:
    """Configuration for account address rendering."""
    hrp: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="pb",
        env_var="METADDR_ACCOUNT_HRP",
        description="Bech32 human readable prefix for account addresses",
        validator=lambda x: isinstance(x, str) and bool(_HRP_RE.fullmatch(x)),
    ))
    max_length: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=255,
        env_var="METADDR_ACCOUNT_MAX_LENGTH",
        description="Maximum account address length in bytes",
        validator=lambda x: isinstance(x, int) and 0 < x <= 255,
    ))


@dataclass
class ObservabilityConfig:
    """Configuration for logging."""
    log_level: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="warning",
        env_var="METADDR_LOG_LEVEL",
        description="Log level (debug, info, warning, error, critical)",
        validator=lambda x: x in ("debug", "info", "warning", "error", "critical"),
    ))
    log_format: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="json",
        env_var="METADDR_LOG_FORMAT",
        description="Log format (json, text)",
        validator=lambda x: x in ("json", "text"),
    ))


@dataclass
class CLIConfig:
    """Configuration for the command-line tool."""
    output_format: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="json",
        env_var="METADDR_OUTPUT_FORMAT",
        description="Default output format (json, yaml, text)",
        validator=lambda x: x in ("json", "yaml", "text"),
    ))


def _walk_values(obj: Any, path: str = ""):
    """Yield (dotted path, ConfigValue) pairs of a config tree."""
    if isinstance(obj, ConfigValue):
        yield path, obj
    elif hasattr(obj, "__dataclass_fields__"):
        for name in obj.__dataclass_fields__:
            yield from _walk_values(getattr(obj, name), f"{path}.{name}" if path else name)


@dataclass
class MetaddrConfig:
    """Root configuration."""
    account: AccountConfig = field(default_factory=AccountConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)
    cli: CLIConfig = field(default_factory=CLIConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a nested dictionary of effective values."""
        out: Dict[str, Any] = {}
        for path, value in _walk_values(self):
            section, key = path.split(".", 1)
            out.setdefault(section, {})[key] = value.get()
        return out

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.safe_dump(self.to_dict(), default_flow_style=False)


class ConfigManager:
    """
    Configuration manager with file loading and environment binding.

    Thread-safe singleton that manages configuration lifecycle.
    """

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "ConfigManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._initialized = False
            return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config = MetaddrConfig()
        self._config_paths: List[Path] = []
        self._mutex = threading.RLock()
        self._initialized = True

    @property
    def config(self) -> MetaddrConfig:
        """Get the current configuration."""
        return self._config

    @property
    def loaded_paths(self) -> List[Path]:
        return list(self._config_paths)

    def load_from_file(self, path: Union[str, Path]) -> None:
        """Load configuration from a YAML file.

        Raises:
            ConfigError: if the file is missing, not YAML, or violates the
                configuration schema.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Configuration file {path} is not valid YAML: {e}") from e

        if data is None:
            data = {}
        errors = validate_against_schema(data, CONFIG_SCHEMA)
        if errors:
            raise ValidationError(f"Invalid configuration file {path}: " + "; ".join(errors))

        with self._mutex:
            self._apply_dict(data)
            if path not in self._config_paths:
                self._config_paths.append(path)
        _log.debug("Loaded configuration file", operation="load", path=str(path))

    def load_defaults(self) -> None:
        """Load default configuration files if they exist.

        A broken default file is reported and skipped.
        """
        default_paths = [
            Path("metaddr.yaml"),
            Path.home() / ".metaddr" / "config.yaml",
        ]

        # Lowest precedence first so the project file wins.
        for path in reversed(default_paths):
            if path.exists():
                try:
                    self.load_from_file(path)
                except ConfigError as e:
                    _log.warning(
                        "Skipping unusable default configuration file",
                        operation="load_defaults",
                        path=str(path),
                        reason=str(e),
                    )

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary values to configuration."""
        def apply_to_config(config_obj: Any, values: Dict[str, Any]) -> None:
            for key, value in values.items():
                if hasattr(config_obj, key):
                    attr = getattr(config_obj, key)
                    if isinstance(attr, ConfigValue):
                        attr.set(value)
                    elif hasattr(attr, "__dataclass_fields__") and isinstance(value, dict):
                        apply_to_config(attr, value)

        apply_to_config(self._config, data)

    def _lookup(self, path: str) -> ConfigValue:
        obj: Any = self._config
        for part in path.split("."):
            if not part or not hasattr(obj, part):
                raise ConfigError(f"Invalid config path: {path}")
            obj = getattr(obj, part)
        if not isinstance(obj, ConfigValue):
            raise ConfigError(f"Invalid config path: {path}")
        return obj

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value by path.

        Example: config.set("account.hrp", "tp")
        """
        with self._mutex:
            self._lookup(path).set(value)

    def get(self, path: str) -> Any:
        """
        Get a configuration value by path.

        Example: config.get("account.hrp")
        """
        return self._lookup(path).get()

    def validate(self) -> List[str]:
        """
        Validate all effective configuration values.

        Returns list of validation errors.
        """
        errors: List[str] = []
        for path, value in _walk_values(self._config):
            try:
                current = value.get()
            except ConfigError as e:
                errors.append(f"{path}: {e}")
                continue
            if value.validator and not value.validator(current):
                errors.append(f"{path}: validation failed for value {current!r}")
        return errors

    def reset(self) -> None:
        """Drop runtime overrides and loaded files, returning to defaults."""
        with self._mutex:
            self._config = MetaddrConfig()
            self._config_paths = []


def get_config() -> MetaddrConfig:
    """Get the current configuration."""
    return ConfigManager().config


def get_config_manager() -> ConfigManager:
    """Get the configuration manager instance."""
    return ConfigManager()
