# RepoSync Repository Contract
# Abstract hierarchical resource store shared by every backend

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from reposync.exceptions import RepositoryAccessError
from reposync.utils.uris import child_uri, is_within, normalize_uri, uri_name

logger = logging.getLogger(__name__)

CONTENT_NAMESPACE = "urn:reposync:content:"

# Content modified timestamp; stored as the resource's modified time, never as a plain property
MODIFIED_PROPERTY_URI = CONTENT_NAMESPACE + "modified"
# Content created timestamp; live on every shipped backend
CREATED_PROPERTY_URI = CONTENT_NAMESPACE + "created"


@dataclass(frozen=True)
class ResourceDescription:
    """
    Description of an existing resource as reported by its repository.

    ``properties`` is unfiltered: it may include live properties, but never the
    modified timestamp, which is reported through ``modified``.
    """

    uri: str
    is_collection: bool
    size: Optional[int] = None
    modified: Optional[datetime] = None
    properties: Mapping[str, Any] = field(default_factory=dict)


class Repository(ABC):
    """
    Hierarchical namespace of resources addressed by absolute URIs.

    Subclasses implement storage; the base class provides URI checking,
    live-property queries and cross-repository copy/move on top of the
    abstract primitives.
    """

    # Precision of the modified timestamps this backend can store
    timestamp_granularity: timedelta = timedelta(0)

    def __init__(self, root_uri: str, live_property_uris: Iterable[str] = (CREATED_PROPERTY_URI,)):
        """
        Initialize repository.

        Args:
            root_uri: URI of the repository root collection.
            live_property_uris: Properties computed by the backend itself.
        """
        self.root_uri = normalize_uri(root_uri)
        self.live_property_uris: frozenset[str] = frozenset(live_property_uris)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.root_uri!r})"

    def is_live_property(self, property_uri: str) -> bool:
        """Check whether a property is computed by the backend and must never be copied."""
        return property_uri in self.live_property_uris

    def shares_storage_with(self, other: Repository) -> bool:
        """Check whether equal URIs in both repositories address the same stored resource."""
        return self is other

    def check_uri(self, uri: str) -> str:
        """
        Normalize a resource URI and verify it belongs to this repository.

        Raises:
            ValueError: If the URI lies outside the repository root.
        """
        normalized = normalize_uri(uri)
        if not is_within(normalized, self.root_uri):
            raise ValueError(f"Resource {uri} is not within repository {self.root_uri}")
        return normalized

    @abstractmethod
    def exists(self, uri: str) -> bool:
        """Check whether a resource exists."""

    @abstractmethod
    def is_collection(self, uri: str) -> bool:
        """Check whether an existing resource is a collection."""

    @abstractmethod
    def describe(self, uri: str) -> ResourceDescription:
        """Get the description of an existing resource."""

    @abstractmethod
    def children(self, uri: str) -> list[str]:
        """List the URIs of the immediate children of a collection."""

    @abstractmethod
    def get_contents(self, uri: str) -> bytes:
        """Read the content of a non-collection resource."""

    @abstractmethod
    def create_collection(self, uri: str) -> None:
        """Create an empty collection; its parent must exist."""

    @abstractmethod
    def create_resource(self, uri: str, content: bytes, properties: Optional[Mapping[str, Any]] = None) -> None:
        """
        Create or replace a non-collection resource.

        Live properties in ``properties`` are ignored; ``MODIFIED_PROPERTY_URI``
        sets the modified timestamp.
        """

    @abstractmethod
    def delete_resource(self, uri: str) -> None:
        """Delete a resource, including all descendants of a collection."""

    @abstractmethod
    def alter_properties(
        self,
        uri: str,
        additions: Optional[Mapping[str, Any]] = None,
        removals: Iterable[str] = (),
    ) -> None:
        """
        Remove the given property URIs, then set the given property values.

        Live properties are left untouched; ``MODIFIED_PROPERTY_URI`` in
        ``additions`` sets the modified timestamp.
        """

    def copy_resource(
        self,
        uri: str,
        destination_repository: Repository,
        destination_uri: str,
        overwrite: bool = False,
    ) -> None:
        """
        Copy a resource, with its non-live properties, to another location.

        The destination may live in a different repository. Collections are
        copied recursively.

        Args:
            uri: Resource to copy.
            destination_repository: Repository receiving the copy (may be self).
            destination_uri: Target URI in the destination repository.
            overwrite: Replace an existing destination resource.

        Raises:
            RepositoryAccessError: If the destination exists and ``overwrite`` is False,
                or on any I/O failure.
        """
        if destination_repository.exists(destination_uri):
            if not overwrite:
                raise RepositoryAccessError(f"Destination already exists: {destination_uri}", destination_uri)
            destination_repository.delete_resource(destination_uri)

        description = self.describe(uri)
        properties = {k: v for k, v in description.properties.items() if not self.is_live_property(k)}

        if description.is_collection:
            destination_repository.create_collection(destination_uri)
            if properties:
                destination_repository.alter_properties(destination_uri, properties)
            for child in self.children(uri):
                self.copy_resource(child, destination_repository, child_uri(destination_uri, uri_name(child)))
        else:
            if description.modified is not None:
                properties[MODIFIED_PROPERTY_URI] = description.modified
            destination_repository.create_resource(destination_uri, self.get_contents(uri), properties)

        logger.debug("Copied %s to %s", uri, destination_uri)

    def move_resource(
        self,
        uri: str,
        destination_repository: Repository,
        destination_uri: str,
        overwrite: bool = False,
    ) -> None:
        """Move a resource by copying it and deleting the original."""
        self.copy_resource(uri, destination_repository, destination_uri, overwrite=overwrite)
        self.delete_resource(uri)
