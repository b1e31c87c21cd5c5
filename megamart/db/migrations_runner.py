"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from the packaged `megamart/migrations/`
directory. Applied filenames are recorded in a `schema_migrations` table inside
the target database so each database tracks its own history and the same
migration is never applied twice. Intended for local development and CI;
production environments should use Alembic or the platform's migration
mechanism.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

from megamart.logic.identifiers import utc_now_iso

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

_JOURNAL_DDL = (
    "CREATE TABLE IF NOT EXISTS schema_migrations ("
    " filename TEXT PRIMARY KEY,"
    " applied_at TEXT NOT NULL"
    ")"
)


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        # Skip rollback scripts in forward runs
        if "rollback" in p.name.lower():
            continue
        yield p


def split_statements(sql: str) -> List[str]:
    """Split a migration script into executable statements.

    Comment-only lines are dropped before splitting on ';' so each statement is
    executed individually; pysqlite rejects multi-statement execute() calls.
    Migration files must not contain ';' inside string literals.
    """
    lines = [line for line in sql.splitlines() if not line.strip().startswith("--")]
    statements = []
    for chunk in "\n".join(lines).split(";"):
        stmt = chunk.strip()
        if stmt and stmt.upper() not in {"BEGIN", "COMMIT", "END"}:
            statements.append(stmt)
    return statements


def _applied_filenames(conn: Connection) -> set[str]:
    conn.execute(sql_text(_JOURNAL_DDL))
    rows = conn.execute(sql_text("SELECT filename FROM schema_migrations")).fetchall()
    return {str(r[0]) for r in rows}


def apply_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> List[str]:
    """Apply pending migrations and return the filenames applied by this call."""
    root = Path(migrations_dir) if migrations_dir is not None else MIGRATIONS_DIR
    if not root.exists():  # pragma: no cover - optional
        logger.warning("migrations_dir_missing path=%s", root)
        return []

    applied_now: List[str] = []
    with engine.begin() as conn:
        applied = _applied_filenames(conn)
        for sql_path in _iter_sql_files(root):
            fname = sql_path.name
            if fname in applied:
                continue
            sql = sql_path.read_text(encoding="utf-8")
            for stmt in split_statements(sql):
                conn.exec_driver_sql(stmt)
            conn.execute(
                sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :at)"),
                {"f": fname, "at": utc_now_iso()},
            )
            applied_now.append(fname)
            logger.info("migration_applied file=%s", fname)
    return applied_now


__all__ = ["MIGRATIONS_DIR", "apply_migrations", "split_statements"]
