"""Alembic migrations bundled with the catalog package."""

from __future__ import annotations

from pathlib import Path

from alembic.config import Config
from sqlalchemy.engine import Connection

MIGRATIONS_DIR = Path(__file__).resolve().parent


def get_alembic_config(connection: Connection | None = None) -> Config:
    """Build an Alembic config pointing at the bundled migration scripts.

    Args:
        connection: Optional open connection for Alembic to reuse.

    Returns:
        An Alembic Config with no ini file behind it.
    """
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    if connection is not None:
        config.attributes["connection"] = connection
    return config


def upgrade_to_head(connection: Connection) -> None:
    """Upgrade the database behind ``connection`` to the latest revision."""
    from alembic import command

    command.upgrade(get_alembic_config(connection), "head")
