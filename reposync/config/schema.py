# RepoSync Configuration Schema
# Pydantic models for YAML configuration validation

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from reposync.utils.uris import guess_absolute_uri


class Resolution(str, Enum):
    """How discrepancies of one category are resolved."""

    BACKUP = "backup"
    RESTORE = "restore"
    PRODUCE = "produce"
    CONSUME = "consume"
    SYNCHRONIZE = "synchronize"
    IGNORE = "ignore"


class RepositoryType(str, Enum):
    """Storage backend of a repository."""

    FILE = "file"
    MEMORY = "memory"
    WEBDAV = "webdav"
    SVN = "svn"


class EndpointConfig(BaseModel):
    """One side of a mirror: a repository and the resource to synchronize within it."""

    repository: str = Field(description="Repository root URI or filesystem path")
    type: RepositoryType | None = Field(default=None, description="Backend type; guessed from the URI scheme if unset")
    resource: str | None = Field(default=None, description="Resource to synchronize; defaults to the repository root")

    @field_validator("repository")
    @classmethod
    def repository_as_uri(cls, v: str) -> str:
        """Convert filesystem paths to file URIs."""
        return guess_absolute_uri(v)

    @field_validator("resource")
    @classmethod
    def resource_as_uri(cls, v: str | None) -> str | None:
        """Convert filesystem paths to file URIs."""
        if v is None:
            return None
        return guess_absolute_uri(v)

    def resource_uri(self) -> str:
        """Return the resource URI, falling back to the repository root."""
        return self.resource or self.repository


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    quiet: bool = Field(default=False, description="Only report warnings and errors")
    colored: bool = Field(default=True, description="Enable colored output")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_paths(cls, v: str | None) -> str | None:
        """Expand ~ in optional paths."""
        if v is None:
            return None
        return str(Path(v).expanduser())


class MirrorConfig(BaseModel):
    """Root configuration model for a mirror run."""

    source: EndpointConfig = Field(description="Source repository")
    destination: EndpointConfig = Field(description="Destination repository")
    resolution: Resolution = Field(default=Resolution.BACKUP, description="Resolution for every category")
    resource_resolution: Resolution | None = Field(default=None, description="Override for orphan resources")
    content_resolution: Resolution | None = Field(default=None, description="Override for content discrepancies")
    metadata_resolution: Resolution | None = Field(default=None, description="Override for property discrepancies")
    ignore_source_resources: list[str] = Field(default_factory=list, description="Source resources never read")
    ignore_destination_resources: list[str] = Field(
        default_factory=list, description="Destination resources never read"
    )
    ignore_properties: list[str] = Field(default_factory=list, description="Property URIs never compared or copied")
    force_content_modified_property: bool = Field(
        default=False, description="Stamp the modified property on every content transfer"
    )
    timestamp_tolerance: float = Field(default=1.0, ge=0, description="Modified timestamp tolerance in seconds")
    test: bool = Field(default=False, description="Dry run: report actions without applying them")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    @field_validator("ignore_source_resources", "ignore_destination_resources")
    @classmethod
    def resources_as_uris(cls, v: list[str]) -> list[str]:
        """Convert filesystem paths to file URIs."""
        return [guess_absolute_uri(item) for item in v]

    def effective_resolutions(self) -> tuple[Resolution, Resolution, Resolution]:
        """Return the (resource, content, metadata) resolutions after applying overrides."""
        return (
            self.resource_resolution or self.resolution,
            self.content_resolution or self.resolution,
            self.metadata_resolution or self.resolution,
        )
