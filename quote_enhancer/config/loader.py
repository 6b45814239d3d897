"""Configuration loader for the quote enhancer."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from .environment import load_environment_config
from .exceptions import ConfigurationError
from .models import EnhancerConfig
from .validators import check_for_warnings, emit_warnings

DEFAULT_CONFIG_CANDIDATES = (
    Path("quote_enhancer.yaml"),
    Path("config") / "quote_enhancer.yaml",
)


def load_config(config_path: Optional[Union[str, Path]] = None) -> EnhancerConfig:
    """
    Load and validate configuration from a YAML file and environment variables.

    Config file resolution:
    1. Use config_path if given (it must exist)
    2. Try quote_enhancer.yaml in the current directory
    3. Try ./config/quote_enhancer.yaml
    4. Use built-in defaults

    Environment variables override values from the file.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Validated EnhancerConfig

    Raises:
        ConfigurationError: If the file or environment is invalid
    """
    config_file = _find_config_file(Path(config_path) if config_path else None)
    config_dict = _read_yaml(config_file) if config_file else {}

    warnings = check_for_warnings(config_dict)
    if warnings:
        emit_warnings(warnings)

    env_config = load_environment_config()
    merged = _deep_merge(config_dict, env_config.as_overrides())

    try:
        return EnhancerConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=format_validation_errors(e),
            source=config_file or "environment",
            suggestions=[
                "Review quote_enhancer.example.yaml for the correct format",
                "Durations accept forms like '30m', '1h' or 'PT30M'",
                "Verify field types match the expected schema",
            ],
        ) from e


def format_validation_errors(error: ValidationError) -> List[str]:
    """Convert Pydantic validation errors into user-friendly messages."""
    messages = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"])
        error_type = item["type"]

        if error_type == "missing":
            messages.append(f"Missing required field: {field_path}")
        elif error_type in ["string_type", "int_type", "int_parsing", "float_type", "bool_type", "dict_type"]:
            expected_type = error_type.split("_")[0]
            messages.append(f"Invalid type for '{field_path}': expected {expected_type}, got {item.get('input')}")
        elif "enum" in error_type:
            messages.append(f"Invalid value for '{field_path}': {item['msg']}")
        else:
            messages.append(f"{field_path or 'config'}: {item['msg']}")
    return messages


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            source=config_file,
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            source=config_file,
            suggestions=[f"Ensure {config_file} is readable", "Check file permissions"],
        ) from e

    if config_dict is None:
        return {}
    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
            source=config_file,
            suggestions=["Review quote_enhancer.example.yaml for the correct format"],
        )
    return config_dict


def _find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    """Return the config file to load, or None to use defaults."""
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[f"Ensure {config_path} exists", "Check the path and try again"],
            )
        return config_path

    for candidate in DEFAULT_CONFIG_CANDIDATES:
        if candidate.exists():
            return candidate
    return None


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
