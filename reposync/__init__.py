"""RepoSync - mirror hierarchical resource repositories.

Reconciles a source and a destination resource tree, possibly stored in
different backends, under per-category resolution policies with exclusion
lists and a dry-run mode.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "Repository",
    "MemoryRepository",
    "FileRepository",
    "create_repository",
    "Resolution",
    "SynchronizationPolicy",
    "ResourceRef",
    "RepositorySynchronizer",
    "SynchronizationReport",
    "synchronize",
    "RepositoryAccessError",
    "ResourceStateError",
    "ConfigurationError",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("Repository", "MemoryRepository", "FileRepository", "create_repository"):
        from reposync import repository

        return getattr(repository, name)
    if name == "Resolution":
        from reposync.config.schema import Resolution

        return Resolution
    if name in ("SynchronizationPolicy", "ResourceRef", "RepositorySynchronizer", "SynchronizationReport", "synchronize"):
        from reposync import sync

        return getattr(sync, name)
    if name in ("RepositoryAccessError", "ResourceStateError", "ConfigurationError"):
        from reposync import exceptions

        return getattr(exceptions, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
