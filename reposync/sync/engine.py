# RepoSync Sync Engine
# Recursive reconciliation of a source and a destination resource tree

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from reposync.exceptions import (
    ConfigurationError,
    RepositoryAccessError,
    ResourceStateError,
    SynchronizationCancelled,
)
from reposync.repository.base import MODIFIED_PROPERTY_URI
from reposync.sync.actions import Category, Decision, ReportEntry, ResourceState, SynchronizationReport
from reposync.sync.policy import Master, SynchronizationPolicy
from reposync.sync.snapshot import (
    ResourceRef,
    ResourceSnapshot,
    effective_tolerance,
    has_content_discrepancy,
    newer_side,
    plan_property_alteration,
    property_discrepancies,
    take_snapshot,
)
from reposync.utils.uris import is_within, uri_name

logger = logging.getLogger(__name__)


class CancelEvent(Protocol):
    """Anything that can signal cancellation, such as ``threading.Event``."""

    def is_set(self) -> bool: ...


def validate_roots(source: ResourceRef, destination: ResourceRef, policy: SynchronizationPolicy) -> None:
    """
    Check that a root pair can be synchronized under a policy.

    Raises:
        ConfigurationError: If a root is outside its repository, is itself
            ignored, or both roots overlap within the same repository.
    """
    for ref in (source, destination):
        try:
            ref.repository.check_uri(ref.uri)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
    if policy.is_source_ignored(source.uri):
        raise ConfigurationError(f"Source resource is ignored: {source.uri}")
    if policy.is_destination_ignored(destination.uri):
        raise ConfigurationError(f"Destination resource is ignored: {destination.uri}")
    if source.repository.shares_storage_with(destination.repository) and (
        is_within(source.uri, destination.uri) or is_within(destination.uri, source.uri)
    ):
        raise ConfigurationError(f"Source {source.uri} and destination {destination.uri} overlap")


class RepositorySynchronizer:
    """
    Reconciles a destination resource tree with a source resource tree.

    Each visited pair is classified (orphan, type mismatch, content or
    metadata discrepancy) and resolved according to the policy. Collections
    existing on both sides after resolution are recursed into. A synchronizer
    runs one synchronization at a time.
    """

    def __init__(self, policy: SynchronizationPolicy, cancel_event: Optional[CancelEvent] = None):
        """
        Initialize synchronizer.

        Args:
            policy: Resolution rules, exclusions and flags for every run.
            cancel_event: Optional event checked before each resource pair.
        """
        self.policy = policy
        self.cancel_event = cancel_event
        self._report = SynchronizationReport(test=policy.test)
        self._tolerance = policy.timestamp_tolerance

    def synchronize(self, source: ResourceRef, destination: ResourceRef) -> SynchronizationReport:
        """
        Synchronize the subtree rooted at a resource pair.

        Args:
            source: Source root.
            destination: Destination root.

        Returns:
            SynchronizationReport listing every decision taken.

        Raises:
            ConfigurationError: If the roots cannot be synchronized; nothing is touched.
            RepositoryAccessError: On the first I/O failure. Already processed
                resources are not rolled back; ``error.report`` holds the partial report.
        """
        validate_roots(source, destination, self.policy)
        self._report = SynchronizationReport(test=self.policy.test)
        self._tolerance = effective_tolerance(self.policy, source.repository, destination.repository)

        mode = "Dry run" if self.policy.test else "Synchronizing"
        logger.info("%s %s -> %s", mode, source.uri, destination.uri)
        try:
            self._visit(source, destination)
        except SynchronizationCancelled:
            logger.warning("Synchronization cancelled after %d entries", len(self._report))
            self._report.cancelled = True
        except RepositoryAccessError as e:
            e.report = self._report
            raise
        return self._report

    # Walk

    def _visit(
        self,
        source: ResourceRef,
        destination: ResourceRef,
        source_virtual: bool = False,
        destination_virtual: bool = False,
    ) -> None:
        # A virtual side is a collection that only a dry run pretends to have created
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SynchronizationCancelled(f"Cancelled before {source.uri}")
        if self.policy.is_source_ignored(source.uri) or self.policy.is_destination_ignored(destination.uri):
            logger.debug("Skipping ignored pair %s -> %s", source.uri, destination.uri)
            return

        logger.debug("Visiting %s -> %s", source.uri, destination.uri)
        with self._reading(source, destination):
            src = self._snapshot(source, source_virtual)
            dst = self._snapshot(destination, destination_virtual)

        if not src.exists and not dst.exists:
            return

        try:
            if not src.exists or not dst.exists:
                recursion = self._resolve_orphan(source, src, destination, dst)
            elif src.is_collection != dst.is_collection:
                recursion = self._resolve_type_mismatch(source, src, destination, dst)
            else:
                # Timestamps converge after a content copy, so the newer side is fixed up front
                newer = newer_side(src, dst, self._tolerance)
                if not src.is_collection:
                    src, dst = self._resolve_content(source, src, destination, dst)
                self._resolve_metadata(source, src, destination, dst, newer)
                recursion = (source_virtual, destination_virtual) if src.is_collection else None
        except ResourceStateError as e:
            logger.warning("%s", e)
            self._report.add(
                ReportEntry(
                    source_uri=source.uri,
                    destination_uri=destination.uri,
                    category=Category.TYPE,
                    decision=Decision.UNRESOLVED,
                    reason="type conflict",
                    error=str(e),
                )
            )
            return

        if recursion is not None:
            self._recurse(source, destination, *recursion)

    def _recurse(
        self, source: ResourceRef, destination: ResourceRef, source_virtual: bool, destination_virtual: bool
    ) -> None:
        with self._reading(source, destination):
            source_names = self._child_names(source, source_virtual, self.policy.is_source_ignored)
            destination_names = self._child_names(destination, destination_virtual, self.policy.is_destination_ignored)

        seen = set(source_names)
        names = source_names + [name for name in destination_names if name not in seen]
        for name in names:
            self._visit(source.child(name), destination.child(name), source_virtual, destination_virtual)

    def _child_names(self, ref: ResourceRef, virtual: bool, is_ignored: Callable[[str], bool]) -> list[str]:
        if virtual:
            return []
        return [uri_name(uri) for uri in ref.repository.children(ref.uri) if not is_ignored(uri)]

    def _snapshot(self, ref: ResourceRef, virtual: bool) -> ResourceSnapshot:
        if virtual:
            return ResourceSnapshot.absent(ref.uri)
        return take_snapshot(ref, self.policy.ignored_property_uris)

    @contextmanager
    def _reading(self, source: ResourceRef, destination: ResourceRef) -> Iterator[None]:
        """Record a failed entry for read errors on a pair, translating OSError."""
        try:
            yield
        except (RepositoryAccessError, OSError) as e:
            self._report.add(
                ReportEntry(
                    source_uri=source.uri,
                    destination_uri=destination.uri,
                    category=Category.RESOURCE,
                    decision=Decision.UNRESOLVED,
                    reason="read failed",
                    error=str(e),
                )
            )
            if isinstance(e, OSError):
                raise RepositoryAccessError(f"Cannot read {source.uri} -> {destination.uri}: {e}") from e
            raise

    # Resolution

    def _resolve_orphan(
        self, source: ResourceRef, src: ResourceSnapshot, destination: ResourceRef, dst: ResourceSnapshot
    ) -> Optional[tuple[bool, bool]]:
        rule = self.policy.existence_rule
        if src.exists:
            orphan, orphan_snapshot, other, other_snapshot = source, src, destination, dst
            orphan_side = Master.SOURCE
            copy_decision, delete_decision = Decision.COPY_TO_DESTINATION, Decision.DELETE_SOURCE
        else:
            orphan, orphan_snapshot, other, other_snapshot = destination, dst, source, src
            orphan_side = Master.DESTINATION
            copy_decision, delete_decision = Decision.COPY_TO_SOURCE, Decision.DELETE_DESTINATION

        if rule.master == orphan_side:
            self._apply(
                source,
                destination,
                Category.RESOURCE,
                copy_decision,
                f"orphan {_kind(orphan_snapshot)}",
                lambda: self._copy_new(orphan, orphan_snapshot, other),
                before=ResourceState.from_snapshot(other_snapshot),
                after=ResourceState.from_snapshot(orphan_snapshot),
            )
            if orphan_snapshot.is_collection:
                return _recursion_after_create(orphan is source, self.policy.test)
        elif rule.master != Master.NONE and rule.destructive:
            self._apply(
                source,
                destination,
                Category.RESOURCE,
                delete_decision,
                f"orphan {_kind(orphan_snapshot)}",
                lambda: orphan.repository.delete_resource(orphan.uri),
                before=ResourceState.from_snapshot(orphan_snapshot),
                after=ResourceState(exists=False),
            )
        else:
            logger.debug("Leaving orphan %s", orphan.uri)
        return None

    def _resolve_type_mismatch(
        self, source: ResourceRef, src: ResourceSnapshot, destination: ResourceRef, dst: ResourceSnapshot
    ) -> Optional[tuple[bool, bool]]:
        master = self.policy.existence_rule.master
        if master == Master.SOURCE:
            master_ref, master_snapshot, mirror, decision = source, src, destination, Decision.REPLACE_DESTINATION
            mirror_snapshot = dst
        elif master == Master.DESTINATION:
            master_ref, master_snapshot, mirror, decision = destination, dst, source, Decision.REPLACE_SOURCE
            mirror_snapshot = src
        else:
            raise ResourceStateError(
                f"Cannot resolve type conflict between {source.uri} and {destination.uri} "
                f"under resource resolution '{self.policy.resource_resolution.value}'",
                source.uri,
                destination.uri,
            )

        def replace() -> None:
            mirror.repository.delete_resource(mirror.uri)
            self._copy_new(master_ref, master_snapshot, mirror)

        self._apply(
            source,
            destination,
            Category.TYPE,
            decision,
            f"{_kind(master_snapshot)} replaces {_kind(mirror_snapshot)}",
            replace,
            before=ResourceState.from_snapshot(mirror_snapshot),
            after=ResourceState.from_snapshot(master_snapshot),
        )
        if master_snapshot.is_collection:
            return _recursion_after_create(master_ref is source, self.policy.test)
        return None

    def _resolve_content(
        self, source: ResourceRef, src: ResourceSnapshot, destination: ResourceRef, dst: ResourceSnapshot
    ) -> tuple[ResourceSnapshot, ResourceSnapshot]:
        if not has_content_discrepancy(src, dst, self._tolerance):
            return src, dst

        master = self.policy.content_rule.master
        if master == Master.NEWER:
            master = newer_side(src, dst, self._tolerance)
        if master == Master.NONE:
            logger.debug("Leaving content discrepancy %s -> %s", source.uri, destination.uri)
            return src, dst

        if master == Master.SOURCE:
            master_ref, master_snapshot, mirror, decision = source, src, destination, Decision.COPY_TO_DESTINATION
            mirror_snapshot = dst
        else:
            master_ref, master_snapshot, mirror, decision = destination, dst, source, Decision.COPY_TO_SOURCE
            mirror_snapshot = src

        self._apply(
            source,
            destination,
            Category.CONTENT,
            decision,
            _content_reason(src, dst),
            lambda: self._copy_content(master_ref, master_snapshot, mirror),
            before=ResourceState.from_snapshot(mirror_snapshot),
            after=ResourceState.from_snapshot(master_snapshot),
        )
        if self.policy.test:
            return src, dst
        # Metadata comparison must see the mutated resource
        with self._reading(source, destination):
            if mirror is destination:
                return src, take_snapshot(destination, self.policy.ignored_property_uris)
            return take_snapshot(source, self.policy.ignored_property_uris), dst

    def _resolve_metadata(
        self,
        source: ResourceRef,
        src: ResourceSnapshot,
        destination: ResourceRef,
        dst: ResourceSnapshot,
        newer: Master,
    ) -> None:
        discrepancies = property_discrepancies(src.properties, dst.properties)
        if not discrepancies:
            return

        rule = self.policy.metadata_rule
        master = newer if rule.master == Master.NEWER else rule.master
        if master == Master.NONE:
            logger.debug("Leaving property discrepancies %s -> %s", source.uri, destination.uri)
            return

        if master == Master.SOURCE:
            mirror, decision = destination, Decision.ALTER_DESTINATION
            additions, removals = plan_property_alteration(src.properties, dst.properties, rule.destructive)
        else:
            mirror, decision = source, Decision.ALTER_SOURCE
            additions, removals = plan_property_alteration(dst.properties, src.properties, rule.destructive)
        if not additions and not removals:
            return

        self._apply(
            source,
            destination,
            Category.METADATA,
            decision,
            f"{len(additions)} set, {len(removals)} removed",
            lambda: mirror.repository.alter_properties(mirror.uri, additions, removals),
            changed_properties=tuple(sorted(set(additions) | set(removals))),
        )

    # Execution

    def _apply(
        self,
        source: ResourceRef,
        destination: ResourceRef,
        category: Category,
        decision: Decision,
        reason: str,
        action: Callable[[], None],
        *,
        before: Optional[ResourceState] = None,
        after: Optional[ResourceState] = None,
        changed_properties: tuple[str, ...] = (),
    ) -> None:
        entry = ReportEntry(
            source_uri=source.uri,
            destination_uri=destination.uri,
            category=category,
            decision=decision,
            reason=reason,
            before=before,
            after=after,
            changed_properties=changed_properties,
        )
        if self.policy.test:
            logger.info("Would %s %s (%s: %s)", _verb(decision), entry.uri, category.value, reason)
            self._report.add(entry)
            return

        logger.info("%s %s (%s: %s)", _verb(decision).capitalize(), entry.uri, category.value, reason)
        try:
            action()
        except RepositoryAccessError as e:
            entry.error = str(e)
            self._report.add(entry)
            raise
        except OSError as e:
            entry.error = str(e)
            self._report.add(entry)
            raise RepositoryAccessError(f"Cannot {_verb(decision)} {entry.uri}: {e}", entry.uri) from e
        entry.applied = True
        self._report.add(entry)

    def _transferable_properties(self, ref: ResourceRef) -> dict[str, Any]:
        repository = ref.repository
        return {k: v for k, v in repository.describe(ref.uri).properties.items() if not repository.is_live_property(k)}

    def _copy_new(self, master: ResourceRef, snapshot: ResourceSnapshot, mirror: ResourceRef) -> None:
        if snapshot.is_collection:
            mirror.repository.create_collection(mirror.uri)
            properties = self._transferable_properties(master)
            if properties:
                mirror.repository.alter_properties(mirror.uri, properties)
        else:
            master.repository.copy_resource(master.uri, mirror.repository, mirror.uri, overwrite=False)
            self._stamp_modified(mirror)

    def _copy_content(self, master: ResourceRef, snapshot: ResourceSnapshot, mirror: ResourceRef) -> None:
        # The mirror keeps its own properties; metadata is resolved separately
        properties = self._transferable_properties(mirror)
        if snapshot.modified is not None:
            properties[MODIFIED_PROPERTY_URI] = snapshot.modified
        content = master.repository.get_contents(master.uri)
        mirror.repository.create_resource(mirror.uri, content, properties)
        self._stamp_modified(mirror)

    def _stamp_modified(self, ref: ResourceRef) -> None:
        if self.policy.force_content_modified_property:
            ref.repository.alter_properties(ref.uri, {MODIFIED_PROPERTY_URI: datetime.now(timezone.utc)})


def synchronize(
    source: ResourceRef,
    destination: ResourceRef,
    policy: SynchronizationPolicy,
    cancel_event: Optional[CancelEvent] = None,
) -> SynchronizationReport:
    """
    Synchronize a destination subtree with a source subtree.

    Args:
        source: Source root.
        destination: Destination root.
        policy: Resolution rules, exclusions and flags.
        cancel_event: Optional event checked before each resource pair.

    Returns:
        SynchronizationReport listing every decision taken.
    """
    return RepositorySynchronizer(policy, cancel_event).synchronize(source, destination)


def _recursion_after_create(created_on_destination: bool, test: bool) -> tuple[bool, bool]:
    """Virtual flags for recursing into a collection just created on one side."""
    if created_on_destination:
        return False, test
    return test, False


def _kind(snapshot: ResourceSnapshot) -> str:
    return "collection" if snapshot.is_collection else "resource"


def _content_reason(src: ResourceSnapshot, dst: ResourceSnapshot) -> str:
    if src.size is None or dst.size is None:
        return "size unknown"
    if src.size != dst.size:
        return f"size {src.size} != {dst.size}"
    return "modified differs"


_VERBS = {
    Decision.COPY_TO_DESTINATION: "copy",
    Decision.COPY_TO_SOURCE: "copy",
    Decision.DELETE_SOURCE: "delete",
    Decision.DELETE_DESTINATION: "delete",
    Decision.REPLACE_DESTINATION: "replace",
    Decision.REPLACE_SOURCE: "replace",
    Decision.ALTER_DESTINATION: "alter",
    Decision.ALTER_SOURCE: "alter",
    Decision.UNRESOLVED: "leave",
}


def _verb(decision: Decision) -> str:
    return _VERBS[decision]
