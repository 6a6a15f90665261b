"""Database models for the catalog."""

from kbcatalog.db.models.catalog_file import MAX_PATH_LENGTH, CatalogFile
from kbcatalog.db.models.file_tag import FileTag
from kbcatalog.db.models.tag import MAX_TAG_LENGTH, Tag

__all__ = [
    # Models
    "CatalogFile",
    "FileTag",
    "Tag",
    # Limits
    "MAX_PATH_LENGTH",
    "MAX_TAG_LENGTH",
]
