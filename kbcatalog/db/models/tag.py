"""Tag model for labelling catalog files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kbcatalog.db.base import Base

if TYPE_CHECKING:
    from kbcatalog.db.models.file_tag import FileTag

# Longest tag name accepted in the TagName column
MAX_TAG_LENGTH = 100


class Tag(Base):
    """A free-form label. Tags outlive their last association."""

    __tablename__ = "Tags"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True, autoincrement=True)

    # Case-sensitive, exact-match unique name
    name: Mapped[str] = mapped_column(
        "TagName", String(MAX_TAG_LENGTH), unique=True, nullable=False
    )

    # Relationships
    file_tags: Mapped[list[FileTag]] = relationship(
        "FileTag", back_populates="tag", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Tag id={self.id} name={self.name!r}>"
