# RepoSync Memory Repository
# Dictionary-backed resource tree for tests and embedded use

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from reposync.exceptions import RepositoryAccessError
from reposync.repository.base import (
    CREATED_PROPERTY_URI,
    MODIFIED_PROPERTY_URI,
    Repository,
    ResourceDescription,
)
from reposync.utils.paths import as_utc
from reposync.utils.uris import parent_uri


@dataclass
class _Node:
    is_collection: bool
    content: bytes = b""
    modified: Optional[datetime] = None
    created: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    properties: dict[str, Any] = field(default_factory=dict)


class MemoryRepository(Repository):
    """
    In-memory repository.

    The root collection always exists. Leaves report their content length as
    size; collections report neither size nor modified timestamp.
    """

    def __init__(self, root_uri: str = "memory://repository/"):
        super().__init__(root_uri)
        self._nodes: dict[str, _Node] = {self.root_uri: _Node(is_collection=True)}

    def _node(self, uri: str) -> _Node:
        node = self._nodes.get(self.check_uri(uri))
        if node is None:
            raise RepositoryAccessError(f"Resource not found: {uri}", uri)
        return node

    def _check_parent(self, uri: str) -> None:
        parent = parent_uri(uri)
        node = self._nodes.get(parent) if parent is not None else None
        if node is None or not node.is_collection:
            raise RepositoryAccessError(f"Parent collection does not exist: {parent}", uri)

    def exists(self, uri: str) -> bool:
        return self.check_uri(uri) in self._nodes

    def is_collection(self, uri: str) -> bool:
        return self._node(uri).is_collection

    def describe(self, uri: str) -> ResourceDescription:
        node = self._node(uri)
        properties = dict(node.properties)
        properties[CREATED_PROPERTY_URI] = node.created
        return ResourceDescription(
            uri=self.check_uri(uri),
            is_collection=node.is_collection,
            size=None if node.is_collection else len(node.content),
            modified=None if node.is_collection else node.modified,
            properties=properties,
        )

    def children(self, uri: str) -> list[str]:
        if not self._node(uri).is_collection:
            raise RepositoryAccessError(f"Not a collection: {uri}", uri)
        parent = self.check_uri(uri)
        return sorted(child for child in self._nodes if child != parent and parent_uri(child) == parent)

    def get_contents(self, uri: str) -> bytes:
        node = self._node(uri)
        if node.is_collection:
            raise RepositoryAccessError(f"Cannot read contents of a collection: {uri}", uri)
        return node.content

    def create_collection(self, uri: str) -> None:
        uri = self.check_uri(uri)
        if uri in self._nodes:
            raise RepositoryAccessError(f"Resource already exists: {uri}", uri)
        self._check_parent(uri)
        self._nodes[uri] = _Node(is_collection=True)

    def create_resource(self, uri: str, content: bytes, properties: Optional[Mapping[str, Any]] = None) -> None:
        uri = self.check_uri(uri)
        existing = self._nodes.get(uri)
        if existing is not None and existing.is_collection:
            raise RepositoryAccessError(f"Cannot replace a collection with a resource: {uri}", uri)
        self._check_parent(uri)

        properties = dict(properties or {})
        modified = properties.pop(MODIFIED_PROPERTY_URI, None)
        modified = as_utc(modified) if modified is not None else datetime.now(timezone.utc)
        node = _Node(
            is_collection=False,
            content=bytes(content),
            modified=modified,
            properties={k: v for k, v in properties.items() if not self.is_live_property(k)},
        )
        if existing is not None:
            node.created = existing.created
        self._nodes[uri] = node

    def delete_resource(self, uri: str) -> None:
        uri = self.check_uri(uri)
        if uri not in self._nodes:
            raise RepositoryAccessError(f"Resource not found: {uri}", uri)
        if uri == self.root_uri:
            raise RepositoryAccessError(f"Cannot delete the repository root: {uri}", uri)
        prefix = uri.rstrip("/") + "/"
        for key in [k for k in self._nodes if k == uri or k.startswith(prefix)]:
            del self._nodes[key]

    def alter_properties(
        self,
        uri: str,
        additions: Optional[Mapping[str, Any]] = None,
        removals: Iterable[str] = (),
    ) -> None:
        node = self._node(uri)
        for property_uri in removals:
            if not self.is_live_property(property_uri):
                node.properties.pop(property_uri, None)
        for property_uri, value in (additions or {}).items():
            if property_uri == MODIFIED_PROPERTY_URI:
                if not node.is_collection:
                    node.modified = as_utc(value)
            elif not self.is_live_property(property_uri):
                node.properties[property_uri] = value
