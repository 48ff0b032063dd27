# Tests for reposync.repository.file and reposync.repository.factory
# Directory tree backend and backend selection

from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from reposync.config.schema import RepositoryType
from reposync.exceptions import ConfigurationError, RepositoryAccessError
from reposync.repository import (
    CREATED_PROPERTY_URI,
    MODIFIED_PROPERTY_URI,
    FileRepository,
    MemoryRepository,
    create_repository,
    guess_repository_type,
)
from reposync.repository.file import COLLECTION_SIDECAR, is_sidecar_name
from reposync.utils.uris import child_uri

T1 = datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


@pytest.fixture
def repo(source_tree: Path) -> FileRepository:
    return FileRepository(source_tree)


def _uri(repo: FileRepository, *names: str) -> str:
    uri = repo.root_uri
    for name in names:
        uri = child_uri(uri, name)
    return uri


class TestFileRepository:
    """Tests for FileRepository."""

    def test_root_from_path_and_uri(self, source_tree):
        from_path = FileRepository(source_tree)
        from_uri = FileRepository(source_tree.resolve().as_uri())
        assert from_path.root_uri == from_uri.root_uri
        assert from_path.root_path == source_tree.resolve()

    def test_other_scheme_rejected(self):
        with pytest.raises(ConfigurationError, match="Not a file URI"):
            FileRepository("memory://repository/")

    def test_describe(self, repo):
        description = repo.describe(_uri(repo, "a.txt"))
        assert not description.is_collection
        assert description.size == 10
        assert description.modified.tzinfo is not None
        assert CREATED_PROPERTY_URI in description.properties

    def test_describe_directory(self, repo):
        description = repo.describe(_uri(repo, "docs"))
        assert description.is_collection
        assert description.size is None
        assert description.modified is None

    def test_children(self, repo):
        assert repo.children(repo.root_uri) == [_uri(repo, "a.txt"), _uri(repo, "docs")]

    def test_children_with_special_characters(self, repo):
        (repo.root_path / "my file.txt").write_bytes(b"")
        uri = _uri(repo, "my file.txt")
        assert uri in repo.children(repo.root_uri)
        assert repo.path_for(uri) == repo.root_path / "my file.txt"

    def test_create_resource_sets_mtime(self, repo):
        uri = _uri(repo, "docs", "new.txt")
        repo.create_resource(uri, b"content", {MODIFIED_PROPERTY_URI: T1})
        assert (repo.root_path / "docs" / "new.txt").read_bytes() == b"content"
        assert repo.describe(uri).modified == T1

    def test_naive_mtime_taken_as_utc(self, repo):
        uri = _uri(repo, "docs", "naive.txt")
        repo.create_resource(uri, b"content", {MODIFIED_PROPERTY_URI: T1.replace(tzinfo=None)})
        assert repo.describe(uri).modified == T1

    def test_create_resource_requires_parent(self, repo):
        with pytest.raises(RepositoryAccessError, match="Parent"):
            repo.create_resource(_uri(repo, "missing", "new.txt"), b"")

    def test_create_collection_twice_rejected(self, repo):
        with pytest.raises(RepositoryAccessError):
            repo.create_collection(_uri(repo, "docs"))

    def test_missing_resource(self, repo):
        with pytest.raises(RepositoryAccessError, match="Cannot access"):
            repo.describe(_uri(repo, "missing"))

    def test_delete(self, repo):
        repo.alter_properties(_uri(repo, "a.txt"), {"urn:x:title": "A"})
        repo.delete_resource(_uri(repo, "a.txt"))
        repo.delete_resource(_uri(repo, "docs"))
        assert list(repo.root_path.iterdir()) == []

    def test_delete_root_rejected(self, repo):
        with pytest.raises(RepositoryAccessError, match="root"):
            repo.delete_resource(repo.root_uri)

    def test_shares_storage_with_other_file_repositories(self, repo, temp_dir):
        assert repo.shares_storage_with(FileRepository(temp_dir))
        assert not repo.shares_storage_with(MemoryRepository())


class TestSidecars:
    """Tests for YAML property description files."""

    def test_leaf_properties_stored_beside_file(self, repo):
        uri = _uri(repo, "a.txt")
        repo.alter_properties(uri, {"urn:x:title": "A", "urn:x:tags": ["one", "two"]})
        sidecar = repo.root_path / ".a.txt.reposync.yaml"
        assert yaml.safe_load(sidecar.read_text(encoding="utf-8")) == {
            "urn:x:title": "A",
            "urn:x:tags": ["one", "two"],
        }
        assert repo.describe(uri).properties["urn:x:tags"] == ["one", "two"]

    def test_collection_properties_stored_inside_directory(self, repo):
        repo.alter_properties(_uri(repo, "docs"), {"urn:x:label": "documents"})
        assert (repo.root_path / "docs" / COLLECTION_SIDECAR).exists()
        assert repo.describe(_uri(repo, "docs")).properties["urn:x:label"] == "documents"

    def test_sidecars_hidden(self, repo):
        repo.alter_properties(_uri(repo, "a.txt"), {"urn:x:title": "A"})
        repo.alter_properties(_uri(repo, "docs"), {"urn:x:label": "documents"})
        assert repo.children(repo.root_uri) == [_uri(repo, "a.txt"), _uri(repo, "docs")]
        assert repo.children(_uri(repo, "docs")) == [_uri(repo, "docs", "b.txt")]
        assert not repo.exists(_uri(repo, ".a.txt.reposync.yaml"))

    def test_removing_last_property_deletes_sidecar(self, repo):
        uri = _uri(repo, "a.txt")
        repo.alter_properties(uri, {"urn:x:title": "A"})
        repo.alter_properties(uri, removals=["urn:x:title"])
        assert not (repo.root_path / ".a.txt.reposync.yaml").exists()

    def test_live_and_modified_not_stored(self, repo):
        uri = _uri(repo, "a.txt")
        repo.alter_properties(uri, {CREATED_PROPERTY_URI: T1, MODIFIED_PROPERTY_URI: T1})
        assert not (repo.root_path / ".a.txt.reposync.yaml").exists()
        assert repo.describe(uri).modified == T1

    def test_corrupt_sidecar(self, repo):
        (repo.root_path / ".a.txt.reposync.yaml").write_text("key: [unclosed", encoding="utf-8")
        with pytest.raises(RepositoryAccessError, match="Corrupt"):
            repo.describe(_uri(repo, "a.txt"))

    def test_is_sidecar_name(self):
        assert is_sidecar_name(".a.txt.reposync.yaml")
        assert is_sidecar_name(COLLECTION_SIDECAR)
        assert not is_sidecar_name("a.txt.reposync.yaml")
        assert not is_sidecar_name(".hidden")

    def test_copy_between_backends(self, repo):
        repo.alter_properties(_uri(repo, "docs", "b.txt"), {"urn:x:title": "B"})
        memory = MemoryRepository()
        repo.copy_resource(_uri(repo, "docs"), memory, "memory://repository/docs")
        description = memory.describe("memory://repository/docs/b.txt")
        assert memory.get_contents("memory://repository/docs/b.txt") == b"hello"
        assert description.properties["urn:x:title"] == "B"
        assert description.modified == repo.describe(_uri(repo, "docs", "b.txt")).modified


class TestFactory:
    """Tests for repository creation."""

    @pytest.mark.parametrize(
        "uri, expected",
        [
            ("file:///tmp/x", RepositoryType.FILE),
            ("memory://repo/", RepositoryType.MEMORY),
            ("https://dav.example.com/files/", RepositoryType.WEBDAV),
            ("svn://svn.example.com/repo", RepositoryType.SVN),
            ("svn+ssh://svn.example.com/repo", RepositoryType.SVN),
        ],
    )
    def test_guess_type(self, uri, expected):
        assert guess_repository_type(uri) == expected

    def test_guess_unknown_scheme(self):
        with pytest.raises(ConfigurationError, match="Cannot guess"):
            guess_repository_type("ftp://example.com/")

    def test_create_from_path(self, source_tree):
        repository = create_repository(str(source_tree))
        assert isinstance(repository, FileRepository)
        assert repository.root_path == source_tree.resolve()

    def test_create_memory(self):
        repository = create_repository("memory://scratch/", "memory")
        assert isinstance(repository, MemoryRepository)
        assert repository.root_uri == "memory://scratch/"

    def test_unsupported_type(self):
        with pytest.raises(ConfigurationError, match="not supported"):
            create_repository("https://dav.example.com/files/")

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match="Unknown repository type"):
            create_repository("memory://scratch/", "ftp")
