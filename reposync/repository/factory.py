# RepoSync Repository Factory
# Create repository backends from URIs and configured types

from typing import Optional, Union
from urllib.parse import urlsplit

from reposync.config.schema import RepositoryType
from reposync.exceptions import ConfigurationError
from reposync.repository.base import Repository
from reposync.repository.file import FileRepository
from reposync.repository.memory import MemoryRepository
from reposync.utils.uris import guess_absolute_uri

# Backends known by name but not shipped with this package
UNSUPPORTED_TYPES = {RepositoryType.WEBDAV, RepositoryType.SVN}

SCHEME_TYPES = {
    "file": RepositoryType.FILE,
    "memory": RepositoryType.MEMORY,
    "http": RepositoryType.WEBDAV,
    "https": RepositoryType.WEBDAV,
    "svn": RepositoryType.SVN,
}


def guess_repository_type(uri: str) -> RepositoryType:
    """
    Guess the backend type from a repository URI's scheme.

    Raises:
        ConfigurationError: If the scheme is not recognized.
    """
    scheme = urlsplit(uri).scheme.lower()
    if scheme.startswith("svn+"):
        return RepositoryType.SVN
    try:
        return SCHEME_TYPES[scheme]
    except KeyError:
        raise ConfigurationError(f"Cannot guess repository type of {uri}") from None


def create_repository(uri: str, repository_type: Optional[Union[RepositoryType, str]] = None) -> Repository:
    """
    Create a repository for a root URI.

    Args:
        uri: Repository root URI or filesystem path.
        repository_type: Backend type; guessed from the URI scheme if None.

    Returns:
        Repository instance.

    Raises:
        ConfigurationError: If the type is unknown or unsupported.
    """
    uri = guess_absolute_uri(uri)
    if repository_type is None:
        repository_type = guess_repository_type(uri)
    try:
        repository_type = RepositoryType(repository_type)
    except ValueError:
        raise ConfigurationError(f"Unknown repository type: {repository_type}") from None

    if repository_type in UNSUPPORTED_TYPES:
        raise ConfigurationError(f"Repository type '{repository_type.value}' is not supported")
    if repository_type == RepositoryType.FILE:
        return FileRepository(uri)
    return MemoryRepository(uri)
