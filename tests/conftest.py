# RepoSync Test Fixtures
# Pytest fixtures for RepoSync tests

import tempfile
from collections.abc import Generator, Iterable, Mapping
from pathlib import Path
from typing import Any, Optional

import pytest
import yaml

from reposync.exceptions import RepositoryAccessError
from reposync.repository import MemoryRepository, Repository, ResourceDescription

MUTATIONS = frozenset(
    {"create_collection", "create_resource", "delete_resource", "alter_properties", "copy_resource", "move_resource"}
)


class RecordingRepository(Repository):
    """Repository proxy recording every call, optionally failing chosen ones."""

    def __init__(self, inner: Repository, fail_on: Iterable[tuple[str, str]] = ()):
        super().__init__(inner.root_uri, inner.live_property_uris)
        self.inner = inner
        self.timestamp_granularity = inner.timestamp_granularity
        self.fail_on = set(fail_on)
        self.calls: list[tuple[str, str]] = []

    def _record(self, method: str, uri: str) -> None:
        uri = self.check_uri(uri)
        self.calls.append((method, uri))
        if (method, uri) in self.fail_on:
            raise RepositoryAccessError(f"Simulated failure: {method} {uri}", uri)

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] in MUTATIONS]

    def calls_for(self, uri: str) -> list[str]:
        uri = self.check_uri(uri)
        return [method for method, called in self.calls if called == uri]

    def exists(self, uri: str) -> bool:
        self._record("exists", uri)
        return self.inner.exists(uri)

    def is_collection(self, uri: str) -> bool:
        self._record("is_collection", uri)
        return self.inner.is_collection(uri)

    def describe(self, uri: str) -> ResourceDescription:
        self._record("describe", uri)
        return self.inner.describe(uri)

    def children(self, uri: str) -> list[str]:
        self._record("children", uri)
        return self.inner.children(uri)

    def get_contents(self, uri: str) -> bytes:
        self._record("get_contents", uri)
        return self.inner.get_contents(uri)

    def create_collection(self, uri: str) -> None:
        self._record("create_collection", uri)
        self.inner.create_collection(uri)

    def create_resource(self, uri: str, content: bytes, properties: Optional[Mapping[str, Any]] = None) -> None:
        self._record("create_resource", uri)
        self.inner.create_resource(uri, content, properties)

    def delete_resource(self, uri: str) -> None:
        self._record("delete_resource", uri)
        self.inner.delete_resource(uri)

    def alter_properties(self, uri: str, additions=None, removals=()) -> None:
        self._record("alter_properties", uri)
        self.inner.alter_properties(uri, additions, removals)

    def copy_resource(self, uri: str, destination_repository: Repository, destination_uri: str, overwrite=False):
        self._record("copy_resource", uri)
        super().copy_resource(uri, destination_repository, destination_uri, overwrite)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("REPOSYNC_CONFIG", raising=False)
    return home


@pytest.fixture
def source_repo() -> MemoryRepository:
    """Empty in-memory source repository."""
    return MemoryRepository("memory://source/")


@pytest.fixture
def destination_repo() -> MemoryRepository:
    """Empty in-memory destination repository."""
    return MemoryRepository("memory://destination/")


@pytest.fixture
def recording():
    """Factory wrapping a repository in a call-recording proxy."""
    return RecordingRepository


@pytest.fixture
def source_tree(temp_dir: Path) -> Path:
    """Directory tree used as a file source repository."""
    root = temp_dir / "source"
    (root / "docs").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"0123456789")
    (root / "docs" / "b.txt").write_bytes(b"hello")
    return root


@pytest.fixture
def sample_config(temp_dir: Path, source_tree: Path) -> Path:
    """Write a valid configuration file mirroring the source tree."""
    config_path = temp_dir / "config.yaml"
    data = {
        "source": {"repository": str(source_tree)},
        "destination": {"repository": str(temp_dir / "backup")},
        "resolution": "backup",
        "output": {"colored": False},
    }
    config_path.write_text(yaml.dump(data), encoding="utf-8")
    return config_path
