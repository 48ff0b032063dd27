# RepoSync Repository Module
# Repository contract and storage backends

from reposync.repository.base import (
    CREATED_PROPERTY_URI,
    MODIFIED_PROPERTY_URI,
    Repository,
    ResourceDescription,
)
from reposync.repository.factory import create_repository, guess_repository_type
from reposync.repository.file import FileRepository
from reposync.repository.memory import MemoryRepository

__all__ = [
    # Contract
    "Repository",
    "ResourceDescription",
    "MODIFIED_PROPERTY_URI",
    "CREATED_PROPERTY_URI",
    # Backends
    "MemoryRepository",
    "FileRepository",
    # Factory
    "create_repository",
    "guess_repository_type",
]
