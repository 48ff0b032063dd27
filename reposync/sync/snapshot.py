# RepoSync Resource Snapshots
# Point-in-time views of resource pairs and discrepancy detection

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from reposync.repository.base import Repository
from reposync.sync.policy import Master, SynchronizationPolicy
from reposync.utils.paths import as_utc
from reposync.utils.uris import child_uri, normalize_uri


@dataclass(frozen=True)
class ResourceRef:
    """One side of a synchronization pair: a repository and a resource URI."""

    repository: Repository
    uri: str

    def __post_init__(self):
        object.__setattr__(self, "uri", normalize_uri(self.uri))

    def child(self, name: str) -> ResourceRef:
        """Build the ref of a named child resource."""
        return ResourceRef(self.repository, child_uri(self.uri, name))


@dataclass(frozen=True)
class ResourceSnapshot:
    """
    Read-only state of one resource at query time.

    ``properties`` excludes live properties and ignored properties. A snapshot
    goes stale as soon as its resource is mutated.
    """

    uri: str
    exists: bool
    is_collection: bool = False
    size: Optional[int] = None
    modified: Optional[datetime] = None
    properties: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def absent(cls, uri: str) -> ResourceSnapshot:
        """Snapshot of a resource that does not exist."""
        return cls(uri=uri, exists=False)


def take_snapshot(ref: ResourceRef, ignored_property_uris: Iterable[str] = ()) -> ResourceSnapshot:
    """
    Query a repository for the current state of a resource.

    Args:
        ref: Resource to query.
        ignored_property_uris: Properties left out of the snapshot.

    Returns:
        ResourceSnapshot of the resource.
    """
    repository = ref.repository
    if not repository.exists(ref.uri):
        return ResourceSnapshot.absent(ref.uri)

    description = repository.describe(ref.uri)
    ignored = frozenset(ignored_property_uris)
    properties = {
        uri: value
        for uri, value in description.properties.items()
        if uri not in ignored and not repository.is_live_property(uri)
    }
    size = description.size if description.size is not None and description.size >= 0 else None
    return ResourceSnapshot(
        uri=ref.uri,
        exists=True,
        is_collection=description.is_collection,
        size=size,
        modified=as_utc(description.modified) if description.modified is not None else None,
        properties=properties,
    )


def effective_tolerance(policy: SynchronizationPolicy, *repositories: Repository) -> timedelta:
    """Return the policy tolerance, widened to the coarsest backend timestamp granularity."""
    return max([policy.timestamp_tolerance, *(repo.timestamp_granularity for repo in repositories)])


def timestamps_differ(a: Optional[datetime], b: Optional[datetime], tolerance: timedelta) -> bool:
    """Check whether two modified timestamps differ; unknown timestamps always differ."""
    if a is None or b is None:
        return True
    return abs(a - b) >= tolerance if tolerance else a != b


def has_content_discrepancy(source: ResourceSnapshot, destination: ResourceSnapshot, tolerance: timedelta) -> bool:
    """Check whether two existing leaves may hold different content."""
    if source.size is None or destination.size is None or source.size != destination.size:
        return True
    return timestamps_differ(source.modified, destination.modified, tolerance)


def newer_side(source: ResourceSnapshot, destination: ResourceSnapshot, tolerance: timedelta) -> Master:
    """
    Determine which side was modified more recently.

    Returns:
        Master.SOURCE or Master.DESTINATION, or Master.NONE when either timestamp
        is unknown or both are equal within the tolerance.
    """
    if source.modified is None or destination.modified is None:
        return Master.NONE
    if not timestamps_differ(source.modified, destination.modified, tolerance):
        return Master.NONE
    return Master.SOURCE if source.modified > destination.modified else Master.DESTINATION


def property_discrepancies(a: Mapping[str, Any], b: Mapping[str, Any]) -> set[str]:
    """Return property URIs present on only one side or with different values."""
    return {uri for uri in a.keys() | b.keys() if uri not in a or uri not in b or a[uri] != b[uri]}


def plan_property_alteration(
    master: Mapping[str, Any], mirror: Mapping[str, Any], destructive: bool
) -> tuple[dict[str, Any], list[str]]:
    """
    Compute the alteration that brings a mirror's properties in line with a master's.

    Args:
        master: Filtered properties of the authoritative side.
        mirror: Filtered properties of the side being altered.
        destructive: Also remove properties the master lacks.

    Returns:
        Tuple of (additions, removals). Both are empty when nothing would change.
    """
    additions = {uri: value for uri, value in master.items() if uri not in mirror or mirror[uri] != value}
    removals = sorted(uri for uri in mirror if uri not in master) if destructive else []
    return additions, removals
