"""CatalogFile model for files recorded in a repository catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kbcatalog.db.base import Base

if TYPE_CHECKING:
    from kbcatalog.db.models.file_tag import FileTag

# Longest relative path accepted in the FileName column
MAX_PATH_LENGTH = 500


class CatalogFile(Base):
    """A file known to the catalog, identified by its repository-relative path."""

    __tablename__ = "Files"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True, autoincrement=True)

    # Forward-slash separated, relative to the repository root
    path: Mapped[str] = mapped_column(
        "FileName", String(MAX_PATH_LENGTH), unique=True, nullable=False
    )

    # Relationships
    file_tags: Mapped[list[FileTag]] = relationship(
        "FileTag",
        back_populates="file",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def tag_names(self) -> list[str]:
        """Names of the tags attached to this file, sorted."""
        return sorted(file_tag.tag.name for file_tag in self.file_tags)

    def __repr__(self) -> str:
        return f"<CatalogFile id={self.id} path={self.path!r}>"
