"""FileTag model for file-tag associations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kbcatalog.db.base import Base

if TYPE_CHECKING:
    from kbcatalog.db.models.catalog_file import CatalogFile
    from kbcatalog.db.models.tag import Tag


class FileTag(Base):
    """Association between a catalog file and a tag."""

    __tablename__ = "FileTagRelations"

    # Composite primary key rules out duplicate (file, tag) pairs
    file_id: Mapped[int] = mapped_column(
        "FileId", Integer, ForeignKey("Files.Id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(
        "TagId", Integer, ForeignKey("Tags.Id", ondelete="CASCADE"), primary_key=True
    )

    # Relationships
    file: Mapped[CatalogFile] = relationship("CatalogFile", back_populates="file_tags")
    tag: Mapped[Tag] = relationship("Tag", back_populates="file_tags")

    __table_args__ = (
        Index("IX_FileTagRelations_TagId", "TagId"),
    )
