# RepoSync Sync Actions
# Decision types and the synchronization report

from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from reposync.sync.snapshot import ResourceSnapshot


class Category(str, Enum):
    """Discrepancy category an entry resolves."""

    RESOURCE = "resource"  # orphan on one side
    TYPE = "type"  # collection on one side, leaf on the other
    CONTENT = "content"
    METADATA = "metadata"


class Decision(str, Enum):
    """Action decided for a resource pair."""

    COPY_TO_DESTINATION = "copy_to_destination"
    COPY_TO_SOURCE = "copy_to_source"
    DELETE_SOURCE = "delete_source"
    DELETE_DESTINATION = "delete_destination"
    REPLACE_DESTINATION = "replace_destination"
    REPLACE_SOURCE = "replace_source"
    ALTER_DESTINATION = "alter_destination"
    ALTER_SOURCE = "alter_source"

    # No safe action exists
    UNRESOLVED = "unresolved"


_TO_DESTINATION = {
    Decision.COPY_TO_DESTINATION,
    Decision.DELETE_DESTINATION,
    Decision.REPLACE_DESTINATION,
    Decision.ALTER_DESTINATION,
}

_TO_SOURCE = {
    Decision.COPY_TO_SOURCE,
    Decision.DELETE_SOURCE,
    Decision.REPLACE_SOURCE,
    Decision.ALTER_SOURCE,
}


class EntryStatus(str, Enum):
    """Outcome of a report entry."""

    APPLIED = "applied"
    WOULD_APPLY = "would_apply"
    FAILED = "failed"


@dataclass(frozen=True)
class ResourceState:
    """State of one side of a pair as seen when a decision was taken."""

    exists: bool
    is_collection: bool = False
    size: Optional[int] = None
    modified: Optional[datetime] = None

    @classmethod
    def from_snapshot(cls, snapshot: "ResourceSnapshot") -> "ResourceState":
        """Build the state of a snapshotted resource."""
        return cls(
            exists=snapshot.exists,
            is_collection=snapshot.is_collection,
            size=snapshot.size,
            modified=snapshot.modified,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for scripting output."""
        return {
            "exists": self.exists,
            "is_collection": self.is_collection,
            "size": self.size,
            "modified": self.modified.isoformat() if self.modified is not None else None,
        }


@dataclass
class ReportEntry:
    """
    One decision taken for a resource pair.

    ``applied`` is False both in dry runs and for failures; ``error`` tells them apart.
    ``before`` and ``after`` hold the acted-upon side before the action and the
    state it is brought to; both are taken before anything is mutated, so a dry
    run reports the same states as a real run. Metadata entries list the
    touched property URIs in ``changed_properties`` instead.
    """

    source_uri: str
    destination_uri: str
    category: Category
    decision: Decision
    applied: bool = False
    reason: str = ""
    error: Optional[str] = None
    before: Optional[ResourceState] = None
    after: Optional[ResourceState] = None
    changed_properties: tuple[str, ...] = ()

    @property
    def uri(self) -> str:
        """Get the URI of the resource acted upon."""
        if self.decision in _TO_SOURCE:
            return self.source_uri
        return self.destination_uri

    @property
    def status(self) -> EntryStatus:
        """Get the entry outcome."""
        if self.error is not None:
            return EntryStatus.FAILED
        if self.applied:
            return EntryStatus.APPLIED
        return EntryStatus.WOULD_APPLY

    @property
    def direction(self) -> str:
        """Get human-readable direction of action."""
        if self.decision in _TO_DESTINATION:
            return "source → destination"
        elif self.decision in _TO_SOURCE:
            return "destination → source"
        else:
            return "—"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for scripting output."""
        data = {
            "uri": self.uri,
            "source_uri": self.source_uri,
            "destination_uri": self.destination_uri,
            "category": self.category.value,
            "decision": self.decision.value,
            "applied": self.applied,
            "status": self.status.value,
            "reason": self.reason,
            "before": self.before.to_dict() if self.before is not None else None,
            "after": self.after.to_dict() if self.after is not None else None,
            "changed_properties": list(self.changed_properties),
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class SynchronizationReport:
    """Ordered record of every decision taken during a synchronization run."""

    entries: list[ReportEntry] = field(default_factory=list)
    test: bool = False
    cancelled: bool = False

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ReportEntry]:
        return iter(self.entries)

    def add(self, entry: ReportEntry) -> ReportEntry:
        """Append an entry."""
        self.entries.append(entry)
        return entry

    @property
    def applied(self) -> list[ReportEntry]:
        """Entries that were carried out."""
        return [e for e in self.entries if e.status == EntryStatus.APPLIED]

    @property
    def would_apply(self) -> list[ReportEntry]:
        """Entries computed in a dry run."""
        return [e for e in self.entries if e.status == EntryStatus.WOULD_APPLY]

    @property
    def failed(self) -> list[ReportEntry]:
        """Entries that failed or could not be resolved."""
        return [e for e in self.entries if e.status == EntryStatus.FAILED]

    @property
    def has_failures(self) -> bool:
        """Check if any entry failed."""
        return any(e.status == EntryStatus.FAILED for e in self.entries)

    def counts_by_category(self) -> dict[Category, int]:
        """Count entries per category."""
        return dict(Counter(e.category for e in self.entries))

    def to_dicts(self) -> list[dict[str, Any]]:
        """Convert all entries to plain dictionaries."""
        return [e.to_dict() for e in self.entries]
