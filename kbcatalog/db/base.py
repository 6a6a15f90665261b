"""SQLAlchemy declarative base for catalog models."""

from __future__ import annotations

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Named constraints keep batch migrations on SQLite deterministic
NAMING_CONVENTION = {
    "ix": "IX_%(table_name)s_%(column_0_name)s",
    "uq": "UQ_%(table_name)s_%(column_0_name)s",
    "fk": "FK_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "PK_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all catalog tables."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
