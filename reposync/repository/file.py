# RepoSync File Repository
# Directory tree backend with YAML sidecar property descriptions

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlsplit
from urllib.request import url2pathname

import yaml

from reposync.exceptions import ConfigurationError, RepositoryAccessError
from reposync.repository.base import (
    CREATED_PROPERTY_URI,
    MODIFIED_PROPERTY_URI,
    Repository,
    ResourceDescription,
)
from reposync.utils.paths import atomic_write, get_mtime, safe_delete, set_mtime
from reposync.utils.uris import child_uri, relative_path

SIDECAR_SUFFIX = ".reposync.yaml"
COLLECTION_SIDECAR = ".@.reposync.yaml"


def is_sidecar_name(name: str) -> bool:
    """Check whether a directory entry is a property description file."""
    return name.startswith(".") and name.endswith(SIDECAR_SUFFIX)


@contextmanager
def _access(uri: str) -> Iterator[None]:
    """Translate filesystem and sidecar parsing errors into RepositoryAccessError."""
    try:
        yield
    except OSError as e:
        raise RepositoryAccessError(f"Cannot access {uri}: {e.strerror or e}", uri) from e
    except yaml.YAMLError as e:
        raise RepositoryAccessError(f"Corrupt property description for {uri}: {e}", uri) from e


class FileRepository(Repository):
    """
    Repository stored as a directory tree.

    Leaves are files and collections are directories. Non-live properties live in
    hidden YAML sidecar files: ``.<name>.reposync.yaml`` beside a file and
    ``.@.reposync.yaml`` inside a directory. The modified property is the file's
    mtime; collections report neither size nor modified timestamp.
    """

    timestamp_granularity = timedelta(microseconds=1)

    def __init__(self, root: Union[str, Path]):
        """
        Initialize repository.

        Args:
            root: ``file:`` URI or filesystem path of the root directory.

        Raises:
            ConfigurationError: If ``root`` is a URI with another scheme.
        """
        if isinstance(root, Path):
            root = root.expanduser().resolve().as_uri()
        parts = urlsplit(root)
        if parts.scheme != "file":
            raise ConfigurationError(f"Not a file URI: {root}")
        super().__init__(root)
        self.root_path = Path(url2pathname(parts.path))

    def shares_storage_with(self, other: Repository) -> bool:
        # file URIs name the same filesystem from every instance
        return isinstance(other, FileRepository)

    def path_for(self, uri: str) -> Path:
        """Map a resource URI to its filesystem path."""
        segments = relative_path(self.check_uri(uri), self.root_uri)
        return self.root_path.joinpath(*segments)

    def _sidecar_for(self, path: Path, is_collection: bool) -> Path:
        if is_collection:
            return path / COLLECTION_SIDECAR
        return path.with_name("." + path.name + SIDECAR_SUFFIX)

    def _read_properties(self, sidecar: Path) -> dict[str, Any]:
        if not sidecar.exists():
            return {}
        data = yaml.safe_load(sidecar.read_text(encoding="utf-8"))
        return dict(data or {})

    def _write_properties(self, sidecar: Path, properties: Mapping[str, Any]) -> None:
        if not properties:
            sidecar.unlink(missing_ok=True)
            return
        atomic_write(sidecar, yaml.safe_dump(dict(properties), default_flow_style=False, allow_unicode=True))

    def _storable(self, properties: Mapping[str, Any]) -> dict[str, Any]:
        return {
            k: v for k, v in properties.items() if k != MODIFIED_PROPERTY_URI and not self.is_live_property(k)
        }

    def exists(self, uri: str) -> bool:
        path = self.path_for(uri)
        if path != self.root_path and is_sidecar_name(path.name):
            return False
        with _access(uri):
            return path.exists()

    def is_collection(self, uri: str) -> bool:
        path = self.path_for(uri)
        with _access(uri):
            if not path.exists():
                raise FileNotFoundError(2, "No such file or directory", str(path))
            return path.is_dir()

    def describe(self, uri: str) -> ResourceDescription:
        path = self.path_for(uri)
        with _access(uri):
            stat = path.stat()
            is_collection = path.is_dir()
            properties = self._read_properties(self._sidecar_for(path, is_collection))
            properties.pop(MODIFIED_PROPERTY_URI, None)
            properties[CREATED_PROPERTY_URI] = datetime.fromtimestamp(stat.st_ctime, timezone.utc)
            return ResourceDescription(
                uri=self.check_uri(uri),
                is_collection=is_collection,
                size=None if is_collection else stat.st_size,
                modified=None if is_collection else get_mtime(path),
                properties=properties,
            )

    def children(self, uri: str) -> list[str]:
        path = self.path_for(uri)
        with _access(uri):
            names = sorted(entry.name for entry in path.iterdir() if not is_sidecar_name(entry.name))
        return [child_uri(uri, name) for name in names]

    def get_contents(self, uri: str) -> bytes:
        with _access(uri):
            return self.path_for(uri).read_bytes()

    def create_collection(self, uri: str) -> None:
        with _access(uri):
            self.path_for(uri).mkdir()

    def create_resource(self, uri: str, content: bytes, properties: Optional[Mapping[str, Any]] = None) -> None:
        path = self.path_for(uri)
        properties = properties or {}
        with _access(uri):
            if path.is_dir():
                raise RepositoryAccessError(f"Cannot replace a collection with a resource: {uri}", uri)
            if not path.parent.is_dir():
                raise RepositoryAccessError(f"Parent collection does not exist: {path.parent}", uri)
            self._write_properties(self._sidecar_for(path, False), self._storable(properties))
            atomic_write(path, bytes(content))
            modified = properties.get(MODIFIED_PROPERTY_URI)
            if modified is not None:
                set_mtime(path, modified)

    def delete_resource(self, uri: str) -> None:
        path = self.path_for(uri)
        if path == self.root_path:
            raise RepositoryAccessError(f"Cannot delete the repository root: {uri}", uri)
        with _access(uri):
            is_collection = path.is_dir()
            safe_delete(path)
            if not is_collection:
                self._sidecar_for(path, False).unlink(missing_ok=True)

    def alter_properties(
        self,
        uri: str,
        additions: Optional[Mapping[str, Any]] = None,
        removals: Iterable[str] = (),
    ) -> None:
        path = self.path_for(uri)
        additions = additions or {}
        with _access(uri):
            is_collection = path.is_dir()
            if not is_collection and not path.exists():
                raise FileNotFoundError(2, "No such file or directory", str(path))
            sidecar = self._sidecar_for(path, is_collection)
            properties = self._read_properties(sidecar)
            for property_uri in removals:
                if not self.is_live_property(property_uri):
                    properties.pop(property_uri, None)
            properties.update(self._storable(additions))
            self._write_properties(sidecar, properties)

            modified = additions.get(MODIFIED_PROPERTY_URI)
            if modified is not None and not is_collection:
                set_mtime(path, modified)
