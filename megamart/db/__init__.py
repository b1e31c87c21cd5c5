"""Database bootstrap utilities for the storefront API.

This module exposes convenience imports for engine construction, a connectivity probe and the
migrations runner that applies the SQL files shipped in `megamart/migrations/`.
The DB layer does not leak ORM models into route handlers; repositories issue
SQL through SQLAlchemy Core.
"""

from megamart.db.base import get_engine, ping_database
from megamart.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "ping_database",
    "apply_migrations",
]
