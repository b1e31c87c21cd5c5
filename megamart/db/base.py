"""SQLAlchemy engine lifecycle and connectivity probe.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. No declarative models are defined here; this module only
manages connection lifecycle.
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine, text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from megamart.config import get_config

logger = logging.getLogger(__name__)


def _db_url() -> str:
    return os.getenv("TEST_DATABASE_URL") or get_config().database.url


# Module-level cached Engine to ensure a single shared connection/engine
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    Reuses a module-level Engine so repositories share the same connection.
    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions and threads.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                # Keep a single in-memory DB connection shared across the process
                kwargs["poolclass"] = StaticPool
        if _ENGINE is not None:
            _ENGINE.dispose()
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("db_engine_created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE


def ping_database() -> bool:
    """Return True when a trivial round-trip to the database succeeds."""
    try:
        with get_engine().connect() as conn:
            conn.execute(sql_text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.warning("db_ping_failed", exc_info=True)
        return False
