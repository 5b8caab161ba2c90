"""SQLAlchemy declarative base for all ORM models.

Provides:
- Base: the DeclarativeBase subclass all models inherit from
- NAMING_CONVENTION: constraint names shared by the models and migrations

Column types are kept dialect-neutral so the same metadata runs on
PostgreSQL in production and on SQLite in local test runs.
"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION: dict[str, str] = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Shared declarative base for all ad targeting models."""

    metadata = sa.MetaData(naming_convention=NAMING_CONVENTION)
