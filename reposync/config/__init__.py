# RepoSync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from reposync.config.defaults import DEFAULT_CONFIG, generate_default_config, get_default_config
from reposync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    parse_config,
    read_config_data,
    save_config,
    validate_config_file,
)
from reposync.config.schema import (
    EndpointConfig,
    MirrorConfig,
    OutputConfig,
    RepositoryType,
    Resolution,
)

__all__ = [
    # Schema
    "MirrorConfig",
    "EndpointConfig",
    "OutputConfig",
    "RepositoryType",
    "Resolution",
    # Loader
    "load_config",
    "read_config_data",
    "parse_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "get_default_config",
    "generate_default_config",
]
