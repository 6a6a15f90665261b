"""Database package for the catalog."""

from kbcatalog.db.base import Base
from kbcatalog.db.session import (
    create_catalog_engine,
    create_session_maker,
    get_database_url,
    scoped_session,
)

__all__ = [
    "Base",
    "create_catalog_engine",
    "create_session_maker",
    "get_database_url",
    "scoped_session",
]
