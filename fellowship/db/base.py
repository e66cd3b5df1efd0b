"""SQLAlchemy Declarative Base — shared base class for all ORM models.

Invariants:
    - All models inherit from Base
    - Base is the single source of truth for table metadata
    - to_snapshot() is the only way rows are handed to the pure core
"""

from sqlalchemy import inspect
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all Fellowship ORM models."""

    def to_snapshot(self) -> dict:
        """Column values as a plain dict (no relationships, no lazy loads)."""
        mapper = inspect(self).mapper
        return {attr.key: getattr(self, attr.key) for attr in mapper.column_attrs}
