# RepoSync Synchronization Policy
# Resolution table and immutable per-run policy

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

from reposync.config.schema import Resolution
from reposync.exceptions import ConfigurationError
from reposync.repository.base import MODIFIED_PROPERTY_URI
from reposync.utils.uris import is_absolute_uri, normalize_uri

if TYPE_CHECKING:
    from reposync.config.schema import MirrorConfig


class Master(str, Enum):
    """Side whose state is authoritative for a discrepancy."""

    SOURCE = "source"
    DESTINATION = "destination"
    NEWER = "newer"  # by modified timestamp
    NONE = "none"


@dataclass(frozen=True)
class ResolutionRule:
    """Master side and destructiveness of a resolution."""

    master: Master
    destructive: bool


RESOLUTION_TABLE: dict[Resolution, ResolutionRule] = {
    Resolution.BACKUP: ResolutionRule(Master.SOURCE, True),
    Resolution.PRODUCE: ResolutionRule(Master.SOURCE, False),
    Resolution.RESTORE: ResolutionRule(Master.DESTINATION, True),
    Resolution.CONSUME: ResolutionRule(Master.DESTINATION, False),
    Resolution.SYNCHRONIZE: ResolutionRule(Master.NEWER, True),
    Resolution.IGNORE: ResolutionRule(Master.NONE, False),
}


def resolve(resolution: Union[Resolution, str]) -> ResolutionRule:
    """Look up the rule of a resolution."""
    return RESOLUTION_TABLE[Resolution(resolution)]


def existence_rule(resolution: Union[Resolution, str]) -> ResolutionRule:
    """
    Look up the rule applied to orphan resources.

    An orphan has no counterpart to compare timestamps with, so SYNCHRONIZE
    falls back to the BACKUP rule.
    """
    resolution = Resolution(resolution)
    if resolution == Resolution.SYNCHRONIZE:
        return RESOLUTION_TABLE[Resolution.BACKUP]
    return RESOLUTION_TABLE[resolution]


def _normalized_uris(uris: Iterable[str], kind: str) -> frozenset[str]:
    result = set()
    for uri in uris:
        if not is_absolute_uri(uri):
            raise ConfigurationError(f"Ignored {kind} must be an absolute URI: {uri!r}")
        result.add(normalize_uri(uri))
    return frozenset(result)


@dataclass(frozen=True)
class SynchronizationPolicy:
    """
    Resolution rules, exclusions and flags of one synchronization run.

    Immutable once constructed. Use :meth:`create` or :meth:`from_config`, which
    validate and normalize their input.
    """

    resource_resolution: Resolution = Resolution.BACKUP
    content_resolution: Resolution = Resolution.BACKUP
    metadata_resolution: Resolution = Resolution.BACKUP
    ignored_source_uris: frozenset[str] = field(default_factory=frozenset)
    ignored_destination_uris: frozenset[str] = field(default_factory=frozenset)
    ignored_property_uris: frozenset[str] = field(default_factory=frozenset)
    force_content_modified_property: bool = False
    test: bool = False
    timestamp_tolerance: timedelta = timedelta(seconds=1)

    def __post_init__(self):
        for name in ("resource_resolution", "content_resolution", "metadata_resolution"):
            try:
                object.__setattr__(self, name, Resolution(getattr(self, name)))
            except ValueError:
                raise ConfigurationError(f"Unknown resolution for {name}: {getattr(self, name)!r}") from None
        object.__setattr__(
            self, "ignored_source_uris", _normalized_uris(self.ignored_source_uris, "source resource")
        )
        object.__setattr__(
            self, "ignored_destination_uris", _normalized_uris(self.ignored_destination_uris, "destination resource")
        )
        object.__setattr__(self, "ignored_property_uris", frozenset(self.ignored_property_uris))
        if MODIFIED_PROPERTY_URI in self.ignored_property_uris:
            raise ConfigurationError("The modified property cannot be ignored; it drives content comparison")
        if self.timestamp_tolerance < timedelta(0):
            raise ConfigurationError("Timestamp tolerance must not be negative")

    @classmethod
    def create(
        cls,
        resolution: Union[Resolution, str] = Resolution.BACKUP,
        *,
        resource_resolution: Optional[Union[Resolution, str]] = None,
        content_resolution: Optional[Union[Resolution, str]] = None,
        metadata_resolution: Optional[Union[Resolution, str]] = None,
        ignored_source_uris: Iterable[str] = (),
        ignored_destination_uris: Iterable[str] = (),
        ignored_property_uris: Iterable[str] = (),
        force_content_modified_property: bool = False,
        test: bool = False,
        timestamp_tolerance: Union[timedelta, float] = timedelta(seconds=1),
    ) -> SynchronizationPolicy:
        """
        Build a policy from an overall resolution and per-category overrides.

        Args:
            resolution: Resolution for every category not overridden.
            resource_resolution: Override for orphan resources.
            content_resolution: Override for content discrepancies.
            metadata_resolution: Override for property discrepancies.
            ignored_source_uris: Source resources never read.
            ignored_destination_uris: Destination resources never read.
            ignored_property_uris: Properties never compared or copied.
            force_content_modified_property: Stamp the modified property on every content transfer.
            test: Dry run.
            timestamp_tolerance: Timestamp tolerance as timedelta or seconds.

        Raises:
            ConfigurationError: If any value is malformed.
        """
        if not isinstance(timestamp_tolerance, timedelta):
            timestamp_tolerance = timedelta(seconds=timestamp_tolerance)
        return cls(
            resource_resolution=resource_resolution or resolution,
            content_resolution=content_resolution or resolution,
            metadata_resolution=metadata_resolution or resolution,
            ignored_source_uris=frozenset(ignored_source_uris),
            ignored_destination_uris=frozenset(ignored_destination_uris),
            ignored_property_uris=frozenset(ignored_property_uris),
            force_content_modified_property=force_content_modified_property,
            test=test,
            timestamp_tolerance=timestamp_tolerance,
        )

    @classmethod
    def from_config(cls, config: MirrorConfig) -> SynchronizationPolicy:
        """Build a policy from a validated mirror configuration."""
        resource, content, metadata = config.effective_resolutions()
        return cls.create(
            resource_resolution=resource,
            content_resolution=content,
            metadata_resolution=metadata,
            ignored_source_uris=config.ignore_source_resources,
            ignored_destination_uris=config.ignore_destination_resources,
            ignored_property_uris=config.ignore_properties,
            force_content_modified_property=config.force_content_modified_property,
            test=config.test,
            timestamp_tolerance=config.timestamp_tolerance,
        )

    @property
    def existence_rule(self) -> ResolutionRule:
        return existence_rule(self.resource_resolution)

    @property
    def content_rule(self) -> ResolutionRule:
        return resolve(self.content_resolution)

    @property
    def metadata_rule(self) -> ResolutionRule:
        return resolve(self.metadata_resolution)

    def is_source_ignored(self, uri: str) -> bool:
        """Check whether a source resource is excluded."""
        return normalize_uri(uri) in self.ignored_source_uris

    def is_destination_ignored(self, uri: str) -> bool:
        """Check whether a destination resource is excluded."""
        return normalize_uri(uri) in self.ignored_destination_uris
