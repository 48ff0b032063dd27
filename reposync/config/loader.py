# RepoSync Configuration Loader
# Load, save, and manage YAML configuration files

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from reposync.config.defaults import generate_default_config, get_default_config
from reposync.config.schema import MirrorConfig
from reposync.exceptions import ConfigurationError
from reposync.utils.paths import atomic_write, ensure_dir

REQUIRED_SECTIONS = ("source", "destination")


def get_config_dir() -> Path:
    """Get the RepoSync configuration directory."""
    return Path.home() / ".config" / "reposync"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    # Allow override via environment variable
    env_path = os.environ.get("REPOSYNC_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def ensure_config_dir(config_path: Optional[Path] = None) -> Path:
    """Ensure the directory holding the configuration file exists."""
    config_dir = config_path.parent if config_path is not None else get_config_dir()
    return ensure_dir(config_dir)


def read_config_data(config_path: Optional[Path] = None) -> dict[str, Any]:
    """
    Read a configuration file and merge it with the defaults, without validating.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Raw configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If the file is not valid YAML or not a mapping.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\nRun 'reposync config init' to create one."
        )
    return _merge_with_defaults(_read_yaml(config_path) or {})


def parse_config(data: dict[str, Any]) -> MirrorConfig:
    """
    Validate raw configuration data.

    Raises:
        ConfigurationError: If the data does not match the schema.
    """
    try:
        return MirrorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError("Invalid configuration:\n" + "\n".join(_format_errors(e))) from e


def load_config(config_path: Optional[Path] = None) -> MirrorConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        MirrorConfig: Validated configuration object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If config file is invalid.
    """
    return parse_config(read_config_data(config_path))


def save_config(config: MirrorConfig, config_path: Optional[Path] = None) -> Path:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration object to save.
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Path: Path where config was saved.
    """
    if config_path is None:
        config_path = get_config_path()

    ensure_config_dir(config_path)
    # Enums are written as their string values
    data = config.model_dump(exclude_none=True, mode="json")
    atomic_write(config_path, yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True))
    return config_path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating default if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        return config_path, False

    ensure_config_dir(config_path)
    atomic_write(config_path, generate_default_config())
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Validate a configuration file without using it.

    Args:
        config_path: Path to config file to validate.

    Returns:
        Tuple of (is_valid, error_messages).
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        data = _read_yaml(config_path)
    except ConfigurationError as e:
        return False, [str(e)]
    if data is None:
        return False, ["Configuration file is empty"]

    missing = [f"Missing '{section}' section" for section in REQUIRED_SECTIONS if section not in data]
    if missing:
        return False, missing

    try:
        MirrorConfig.model_validate(data)
    except ValidationError as e:
        return False, _format_errors(e)

    return True, []


def _read_yaml(config_path: Path) -> Optional[dict[str, Any]]:
    """
    Parse a configuration file.

    Returns:
        The top-level mapping, or None for an empty file.

    Raises:
        ConfigurationError: If the file is not valid YAML or not a mapping.
    """
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e
    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")
    return data


def _format_errors(error: ValidationError) -> list[str]:
    """Format pydantic validation errors as 'location: message' lines."""
    return [f"{' -> '.join(str(loc) for loc in item['loc'])}: {item['msg']}" for item in error.errors()]


def _merge_with_defaults(data: dict) -> dict:
    """Merge loaded data with default values for missing keys."""
    result = get_default_config()

    for section in ("source", "destination", "output"):
        if isinstance(data.get(section), dict):
            result[section] = {**result[section], **data[section]}
        elif section in data:
            result[section] = data[section]

    for key, value in data.items():
        if key not in ("source", "destination", "output"):
            result[key] = value

    return result
