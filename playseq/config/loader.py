"""Configuration loading and management."""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from playseq.config.models import RunConfig
from playseq.core.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = "playseq.yaml"
INPUT_PREFIX = "INPUT_"


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RunConfig:
    """Load run configuration from multiple sources.

    Configuration is loaded in the following order (later sources override earlier ones):
    1. Default configuration (built into the models)
    2. Configuration file (explicit path, or playseq.yaml in the current directory)
    3. Action inputs from the environment (INPUT_<NAME>)
    4. Explicit overrides, usually CLI options

    Args:
        config_path: Explicit path to a config file
        overrides: Values that take precedence over every other source
        environ: Environment to read inputs from (defaults to os.environ)

    Returns:
        Merged and validated run configuration

    Raises:
        ConfigurationError: If a required input is missing or a value is invalid
    """
    config_data: Dict[str, Any] = {}

    path = config_path or _get_default_config_path()
    if config_path and not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    if path and path.exists():
        config_data = _merge_config(config_data, _load_yaml_file(path))

    config_data = _merge_config(config_data, read_action_inputs(environ))

    if overrides:
        config_data = _merge_config(
            config_data, {k: v for k, v in overrides.items() if v is not None}
        )

    try:
        return RunConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e


def read_action_inputs(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect run inputs passed as INPUT_<NAME> environment variables.

    Only fields of RunConfig are read, and empty values count as unset.
    """
    if environ is None:
        environ = os.environ

    inputs: Dict[str, Any] = {}
    for name in RunConfig.model_fields:
        if name == "logging":
            continue
        value = environ.get(f"{INPUT_PREFIX}{name.upper()}")
        if value is not None and value.strip() != "":
            inputs[name] = value
    return inputs


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "config"
        if item["type"] == "missing":
            problems.append(f"missing required input '{field}'")
        else:
            problems.append(f"{field}: {item['msg']}")
    return "Configuration validation failed: " + "; ".join(problems)


def _get_default_config_path() -> Optional[Path]:
    """Get the project configuration file path in the current directory."""
    path = Path.cwd() / DEFAULT_CONFIG_FILE
    return path if path.exists() else None


def _load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed YAML data as dictionary

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read {file_path}: {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file must contain a YAML object, got {type(data).__name__}"
        )

    return data


def _merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries recursively.

    Args:
        base: Base configuration dictionary
        override: Override configuration dictionary

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            result[key] = _merge_config(result[key], value)
        else:
            result[key] = value

    return result
