"""
Configuration loading from YAML.

String values may reference environment variables as ``${VAR}`` or
``${VAR:default}``. A ``base.yaml`` next to the loaded file, or an
explicit base path, supplies values the file does not override.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from ingestkit.config.settings import EngineConfig, LoggingConfig, TextDefaults

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def expand_env_vars(value: Any) -> Any:
    """Substitute environment references in every string of a YAML value."""
    if isinstance(value, str):
        return ENV_VAR_PATTERN.sub(
            lambda m: os.environ.get(m.group(1), m.group(2) or ""),
            value,
        )
    if isinstance(value, dict):
        return {key: expand_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def merge_sections(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay ``override`` on ``base``; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_sections(current, value)
        else:
            merged[key] = value
    return merged


def load_yaml(path: Path) -> dict[str, Any]:
    """
    Read a YAML mapping with environment references expanded.

    An empty file is an empty mapping.

    Raises:
        ValueError: If the document is not a mapping.
    """
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file must contain a mapping: {path}"
        raise ValueError(msg)
    return expand_env_vars(data)


def _base_for(config_path: Path, base_path: Path | None) -> dict[str, Any]:
    if base_path is not None:
        return load_yaml(base_path)
    sibling = config_path.parent / "base.yaml"
    if sibling.exists() and sibling.resolve() != config_path.resolve():
        return load_yaml(sibling)
    return {}


def load_config(
    config_path: Path | None = None,
    base_path: Path | None = None,
) -> EngineConfig:
    """
    Load engine configuration from YAML file(s).

    Recognised sections:
        - text: delimiter, has_header, quote_char, escape_char, encoding,
          sample_rows, max_coercion_attempts
        - logging: level, json_output

    Args:
        config_path: Path to the main configuration file. None returns defaults.
        base_path: Optional path to base configuration for inheritance.

    Returns:
        Fully validated EngineConfig instance.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        pydantic.ValidationError: If a section holds invalid values.
    """
    if config_path is None:
        return EngineConfig()

    if not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)

    merged = merge_sections(_base_for(config_path, base_path), load_yaml(config_path))

    return EngineConfig(
        text=TextDefaults(**(merged.get("text") or {})),
        logging=LoggingConfig(**(merged.get("logging") or {})),
    )
