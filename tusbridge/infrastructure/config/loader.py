"""
Configuration loading and saving utilities.

Configuration comes from an optional YAML or JSON file, overlaid with
``TUSBRIDGE_*`` environment variables.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from .models import ApplicationConfig

ENV_PREFIX = "TUSBRIDGE_"

YAML_SUFFIXES = (".yaml", ".yml")
JSON_SUFFIXES = (".json",)


def parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on", "enabled")


# Variable suffix -> (section or None for top level, field, converter)
ENV_OVERRIDES: Dict[str, Tuple[Optional[str], str, Callable[[str], Any]]] = {
    "DEBUG": (None, "debug", parse_bool),
    "ENVIRONMENT": (None, "environment", str),
    "CONTENT_STORE": (None, "content_store", str),
    "TUS_HOST": ("tus", "host", str),
    "TUS_BEHIND_PROXY": ("tus", "behind_proxy", parse_bool),
    "TUS_EXT_ORIGIN": ("tus", "ext_origin", str),
    "TUS_BINARY": ("tus", "binary", str),
    "TUS_DATA_DIR": ("tus", "data_directory", str),
    "API_HOST": ("api", "host", str),
    "API_PORT": ("api", "port", int),
    "LOG_LEVEL": ("logging", "level", str),
    "LOG_DIR": ("logging", "log_directory", str),
}


class ConfigLoader:
    """Builds an ApplicationConfig from a file and the environment."""

    def __init__(self, environ: Optional[Dict[str, str]] = None) -> None:
        self._environ = environ

    def load_config(self, config_file: Optional[str] = None) -> ApplicationConfig:
        """
        Load configuration from file and environment variables.

        Environment variables win over file values.

        Args:
            config_file: Path to a ``.yaml``, ``.yml`` or ``.json`` file

        Returns:
            Loaded and validated configuration

        Raises:
            FileNotFoundError: If ``config_file`` does not exist
            ValueError: If the file or an environment value cannot be parsed
        """
        data = self._read_file(Path(config_file)) if config_file else {}
        self._apply_environment(data)

        config = ApplicationConfig.from_dict(data)
        config.config_file_path = config_file
        return config

    def save_config(self, config: ApplicationConfig, file_path: str, format: str = "yaml") -> None:
        """Write ``config`` as YAML or JSON, without runtime-only fields."""
        data = config.to_dict()
        data.pop("config_file_path", None)

        fmt = format.lower()
        if fmt not in ("yaml", "json"):
            raise ValueError(f"Unsupported format: {format}")

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                if fmt == "yaml":
                    yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
                else:
                    json.dump(data, f, indent=2)
        except OSError as e:
            raise ValueError(f"Error writing configuration to {file_path}: {e}")

    def _read_file(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()
        if suffix not in YAML_SUFFIXES + JSON_SUFFIXES:
            raise ValueError(f"Unsupported configuration file format: {suffix}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) if suffix in YAML_SUFFIXES else json.load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}")
        except OSError as e:
            raise ValueError(f"Error reading {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {path} must be a mapping, got {type(data).__name__}")
        return data

    def _apply_environment(self, data: Dict[str, Any]) -> None:
        environ = os.environ if self._environ is None else self._environ

        for suffix, (section, key, convert) in ENV_OVERRIDES.items():
            name = ENV_PREFIX + suffix
            raw = environ.get(name)
            if raw is None:
                continue
            try:
                value = convert(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {name}: {raw} ({e})")

            target = data if section is None else data.setdefault(section, {})
            if not isinstance(target, dict):
                raise ValueError(f"Configuration section {section!r} must be a mapping")
            target[key] = value
