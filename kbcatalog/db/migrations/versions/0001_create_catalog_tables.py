"""create_catalog_tables

Revision ID: 0001
Revises:
Create Date: 2025-11-02 09:00:00.000000

Initial catalog schema:
- Files table: one row per repository-relative path
- Tags table: tag vocabulary
- FileTagRelations table: file-tag associations with composite primary key
"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    """Create the Files, Tags and FileTagRelations tables."""
    op.create_table(
        "Files",
        sa.Column("Id", sa.Integer(), nullable=False),
        sa.Column("FileName", sa.String(500), nullable=False),
        sa.PrimaryKeyConstraint("Id", name="PK_Files"),
        sa.UniqueConstraint("FileName", name="UQ_Files_FileName"),
    )

    op.create_table(
        "Tags",
        sa.Column("Id", sa.Integer(), nullable=False),
        sa.Column("TagName", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("Id", name="PK_Tags"),
        sa.UniqueConstraint("TagName", name="UQ_Tags_TagName"),
    )

    op.create_table(
        "FileTagRelations",
        sa.Column("FileId", sa.Integer(), nullable=False),
        sa.Column("TagId", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["FileId"], ["Files.Id"],
            name="FK_FileTagRelations_FileId_Files",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["TagId"], ["Tags.Id"],
            name="FK_FileTagRelations_TagId_Tags",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("FileId", "TagId", name="PK_FileTagRelations"),
    )
    op.create_index("IX_FileTagRelations_TagId", "FileTagRelations", ["TagId"])


def downgrade() -> None:
    """Drop all catalog tables."""
    op.drop_index("IX_FileTagRelations_TagId", table_name="FileTagRelations")
    op.drop_table("FileTagRelations")
    op.drop_table("Tags")
    op.drop_table("Files")
