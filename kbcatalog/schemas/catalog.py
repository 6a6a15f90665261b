"""Result schemas for catalog operations."""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field


class CatalogStatus(str, enum.Enum):
    """Outcome of a catalog operation."""

    OK = "OK"
    CREATED = "CREATED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    ADDED = "ADDED"
    DUPLICATE = "DUPLICATE"
    ATTACHED = "ATTACHED"
    TAG_ALREADY_ATTACHED = "TAG_ALREADY_ATTACHED"
    DETACHED = "DETACHED"
    ASSOCIATION_NOT_FOUND = "ASSOCIATION_NOT_FOUND"
    DELETED = "DELETED"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    NOT_INITIALIZED = "NOT_INITIALIZED"
    INVALID = "INVALID"
    STORAGE_ERROR = "STORAGE_ERROR"


# Statuses a caller can treat as success
SUCCESS_STATUSES = frozenset({
    CatalogStatus.OK,
    CatalogStatus.CREATED,
    CatalogStatus.ALREADY_EXISTS,
    CatalogStatus.ADDED,
    CatalogStatus.ATTACHED,
    CatalogStatus.DETACHED,
    CatalogStatus.DELETED,
})


class FileWithTags(BaseModel):
    """A catalog file and the names of its tags."""

    path: str = Field(description="Repository-relative path")
    tags: list[str] = Field(default_factory=list, description="Attached tag names")


class CatalogResult(BaseModel):
    """Outcome of a catalog operation with a printable message."""

    status: CatalogStatus
    message: str = ""

    @property
    def ok(self) -> bool:
        """Whether the operation succeeded."""
        return self.status in SUCCESS_STATUSES


class FileListResult(CatalogResult):
    """Files with their tags."""

    files: list[FileWithTags] = Field(default_factory=list)


class PathListResult(CatalogResult):
    """File paths matching a tag."""

    paths: list[str] = Field(default_factory=list)


class TagListResult(CatalogResult):
    """Tag vocabulary of a catalog."""

    tags: list[str] = Field(default_factory=list)


class ReconcileResult(CatalogResult):
    """Counts from one scan-and-ingest pass."""

    added: int = Field(default=0, ge=0, description="Files newly recorded")
    skipped: int = Field(default=0, ge=0, description="Files already known")
