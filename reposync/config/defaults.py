# RepoSync Default Configuration
# Default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "source": {
        "repository": "~/Documents",
        "type": None,
        "resource": None,
    },
    "destination": {
        "repository": "~/Backup/Documents",
        "type": None,
        "resource": None,
    },
    "resolution": "backup",
    "resource_resolution": None,
    "content_resolution": None,
    "metadata_resolution": None,
    "ignore_source_resources": [],
    "ignore_destination_resources": [],
    "ignore_properties": [],
    "force_content_modified_property": False,
    "timestamp_tolerance": 1.0,
    "test": False,
    "output": {
        "verbose": False,
        "quiet": False,
        "colored": True,
        "log_file": None,
    },
}


def get_default_config() -> dict[str, Any]:
    """Return a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate the default configuration file content."""
    header = """# RepoSync Configuration
# Mirrors a source repository onto a destination repository.
#
# Repositories are URIs (file:///path, memory://name/) or filesystem paths.
#
# Resolutions (per category: resource, content, metadata):
#   - backup:      source wins, destination-only data is removed
#   - produce:     source wins, destination-only data is kept
#   - restore:     destination wins, source-only data is removed
#   - consume:     destination wins, source-only data is kept
#   - synchronize: the newer side wins (orphans are backed up)
#   - ignore:      discrepancies are left alone

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
