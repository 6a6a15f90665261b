"""Pydantic schemas for catalog results."""

from kbcatalog.schemas.catalog import (
    SUCCESS_STATUSES,
    CatalogResult,
    CatalogStatus,
    FileListResult,
    FileWithTags,
    PathListResult,
    ReconcileResult,
    TagListResult,
)

__all__ = [
    "SUCCESS_STATUSES",
    "CatalogResult",
    "CatalogStatus",
    "FileListResult",
    "FileWithTags",
    "PathListResult",
    "ReconcileResult",
    "TagListResult",
]
