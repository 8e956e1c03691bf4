"""
Config system - layered configuration for contexts.

Sources are merged with precedence (later overrides earlier):
config files > .env file > environment variables > manual overrides
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from glob import glob
from pathlib import Path
import json
import logging
import os

from dotenv import dotenv_values
import yaml

from .errors import ConfigError
from .introspection import DEFAULT_CALLBACK_NAMES

logger = logging.getLogger("paramctx.config")

ENV_PREFIX = "PARAMCTX_"


@dataclass
class ContextOptions:
    """Validated options for building a Context."""

    callback: List[str] = field(default_factory=lambda: list(DEFAULT_CALLBACK_NAMES))
    parameters: Dict[str, Any] = field(default_factory=dict)


class ConfigLoader:
    """
    Loads and merges context configuration from multiple sources.

    Layout of the merged data::

        callback: ["callback", "done"]    # or "callback,done"
        parameters:
          region: eu-west-1
          retries: 3

    Environment variables use ``__`` for nesting, e.g.
    ``PARAMCTX_PARAMETERS__REGION=eu-west-1``.
    """

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = ENV_PREFIX,
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        use_environ: bool = True,
    ) -> "ConfigLoader":
        """
        Load configuration from multiple sources.

        Args:
            paths: Config file paths (glob patterns supported; .json, .yaml, .yml)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)
            use_environ: Read variables from os.environ

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        if use_environ:
            loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        matches = sorted(glob(pattern))
        if not matches:
            logger.debug(f"No config files match {pattern}")

        for path_str in matches:
            path = Path(path_str)
            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                raise ConfigError(f"Unsupported config file type: {path}")

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        with open(path) as f:
            data = json.load(f)
        self._merge_mapping(data, path)

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        if data:
            self._merge_mapping(data, path)

    def _merge_mapping(self, data: Any, path: Path):
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
        self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load config from .env file."""
        if not Path(path).exists():
            logger.debug(f"Env file {path} not found; skipping")
            return

        for key, value in dotenv_values(path).items():
            if key.startswith(self.env_prefix) and value is not None:
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert PARAMCTX_PARAMETERS__REGION to nested dict."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def get_context_options(self) -> ContextOptions:
        """
        Validate merged data into ContextOptions.

        Raises:
            ConfigError: If a field has the wrong type
        """
        options = ContextOptions()

        callback = self.config_data.get("callback")
        if callback is not None:
            if isinstance(callback, str):
                callback = [name.strip() for name in callback.split(",") if name.strip()]
            if not isinstance(callback, list) or not all(isinstance(name, str) for name in callback):
                raise ConfigError(
                    f"Config field 'callback' expected a list of strings, got {callback!r}"
                )
            options.callback = callback

        parameters = self.config_data.get("parameters")
        if parameters is not None:
            if not isinstance(parameters, dict):
                raise ConfigError(
                    f"Config field 'parameters' expected dict, got {type(parameters).__name__}"
                )
            options.parameters = dict(parameters)

        return options

    def to_dict(self) -> dict:
        """Export all config as dictionary."""
        return self.config_data.copy()
