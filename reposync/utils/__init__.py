# RepoSync Utilities Module
# Helper functions for URI handling and filesystem writes

from reposync.utils.paths import (
    as_utc,
    atomic_write,
    ensure_dir,
    get_mtime,
    safe_delete,
    set_mtime,
)
from reposync.utils.uris import (
    child_uri,
    guess_absolute_uri,
    is_absolute_uri,
    is_within,
    normalize_uri,
    parent_uri,
    relative_path,
    uri_name,
)

__all__ = [
    # URIs
    "normalize_uri",
    "is_absolute_uri",
    "child_uri",
    "uri_name",
    "parent_uri",
    "is_within",
    "relative_path",
    "guess_absolute_uri",
    # Paths
    "ensure_dir",
    "atomic_write",
    "safe_delete",
    "get_mtime",
    "set_mtime",
    "as_utc",
]
