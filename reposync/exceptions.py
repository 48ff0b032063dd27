# RepoSync Exceptions
# Error taxonomy shared by repositories, the synchronizer and the CLI

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reposync.sync.actions import SynchronizationReport


class RepoSyncError(Exception):
    """Base class for all RepoSync errors."""


class RepositoryAccessError(RepoSyncError):
    """
    I/O failure reading or writing a resource.

    Never retried by the synchronizer. When raised out of a synchronization run,
    ``report`` holds the partial report of everything done before the failure.
    """

    def __init__(self, message: str, uri: str | None = None):
        super().__init__(message)
        self.uri = uri
        self.report: SynchronizationReport | None = None


class ResourceStateError(RepoSyncError):
    """A resource pair is in a state the active policy cannot safely resolve."""

    def __init__(self, message: str, source_uri: str | None = None, destination_uri: str | None = None):
        super().__init__(message)
        self.source_uri = source_uri
        self.destination_uri = destination_uri


class ConfigurationError(RepoSyncError):
    """Malformed configuration or policy; raised before any mutation happens."""


class SynchronizationCancelled(RepoSyncError):
    """Raised inside a walk when its cancel event is set."""
