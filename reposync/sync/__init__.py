# RepoSync Sync Module
# Policy model, snapshots, report and synchronization engine

from reposync.sync.actions import (
    Category,
    Decision,
    EntryStatus,
    ReportEntry,
    ResourceState,
    SynchronizationReport,
)
from reposync.sync.engine import RepositorySynchronizer, synchronize, validate_roots
from reposync.sync.policy import (
    RESOLUTION_TABLE,
    Master,
    ResolutionRule,
    SynchronizationPolicy,
    existence_rule,
    resolve,
)
from reposync.sync.snapshot import (
    ResourceRef,
    ResourceSnapshot,
    effective_tolerance,
    has_content_discrepancy,
    newer_side,
    plan_property_alteration,
    property_discrepancies,
    take_snapshot,
    timestamps_differ,
)

__all__ = [
    # Policy
    "Master",
    "ResolutionRule",
    "RESOLUTION_TABLE",
    "resolve",
    "existence_rule",
    "SynchronizationPolicy",
    # Snapshot
    "ResourceRef",
    "ResourceSnapshot",
    "take_snapshot",
    "timestamps_differ",
    "effective_tolerance",
    "has_content_discrepancy",
    "newer_side",
    "property_discrepancies",
    "plan_property_alteration",
    # Report
    "Category",
    "Decision",
    "EntryStatus",
    "ReportEntry",
    "ResourceState",
    "SynchronizationReport",
    # Engine
    "RepositorySynchronizer",
    "synchronize",
    "validate_roots",
]
