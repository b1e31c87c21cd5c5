"""Architectural tests for the MegaMart package layout.

Static, file/AST-based checks: route handlers stay free of SQL, repositories
own data access, the client package stays independent of the server stack,
and error handling never uses bare `except:` clauses.
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import Iterable, List, Set

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
PACKAGE_DIR = PROJECT_ROOT / "megamart"
ROUTES_DIR = PACKAGE_DIR / "routes"
LOGIC_DIR = PACKAGE_DIR / "logic"
CLIENT_DIR = PACKAGE_DIR / "client"

_SQL_RE = re.compile(r"\b(SELECT|INSERT\s+INTO|UPDATE\s+\w+\s+SET|DELETE\s+FROM)\b")


def _py_files(root: Path) -> List[Path]:
    return sorted(p for p in root.rglob("*.py") if "__pycache__" not in p.parts)


def _parse(path: Path) -> ast.Module:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Cannot parse {path}: {exc}")


def _imported_modules(tree: ast.Module) -> Set[str]:
    names: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            names.add(node.module)
    return names


def _string_constants(tree: ast.Module) -> Iterable[str]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            yield node.value


def _repository_files() -> List[Path]:
    return sorted(LOGIC_DIR.glob("repository_*.py"))


def test_route_modules_contain_no_sql_or_database_imports():
    offenders = []
    for path in _py_files(ROUTES_DIR):
        tree = _parse(path)
        if any(m.startswith("sqlalchemy") for m in _imported_modules(tree)):
            offenders.append(f"{path.name}: imports sqlalchemy")
        if any(_SQL_RE.search(s) for s in _string_constants(tree)):
            offenders.append(f"{path.name}: embeds SQL")
    assert offenders == []


def test_repositories_use_the_shared_engine_and_not_fastapi():
    files = _repository_files()
    assert len(files) >= 9
    for path in files:
        modules = _imported_modules(_parse(path))
        assert "megamart.db.base" in modules, f"{path.name} must obtain connections via get_engine()"
        assert not any(m.startswith("fastapi") for m in modules), f"{path.name} must not depend on FastAPI"


def test_every_route_module_is_registered():
    init_source = (ROUTES_DIR / "__init__.py").read_text(encoding="utf-8")
    for path in ROUTES_DIR.glob("*.py"):
        if path.name == "__init__.py":
            continue
        assert f"megamart.routes.{path.stem} import router" in init_source, path.name


def test_route_modules_raise_problems_through_the_factory():
    for path in _py_files(ROUTES_DIR):
        tree = _parse(path)
        for node in ast.walk(tree):
            if isinstance(node, ast.Raise) and isinstance(node.exc, ast.Call):
                func = node.exc.func
                name = func.id if isinstance(func, ast.Name) else getattr(func, "attr", "")
                assert name != "HTTPException", f"{path.name} raises HTTPException directly"


def test_client_modules_do_not_import_the_server_stack_directly():
    """Client modules name no server dependency in their own imports.

    Importing `megamart` itself still loads the app factory through the
    package `__init__`; this check covers the client modules' direct imports.
    """
    for path in _py_files(CLIENT_DIR):
        modules = _imported_modules(_parse(path))
        forbidden = {m for m in modules if m.split(".")[0] in {"fastapi", "sqlalchemy", "starlette"}}
        forbidden |= {m for m in modules if m.startswith(("megamart.routes", "megamart.db"))}
        assert not forbidden, f"{path.name} imports {sorted(forbidden)}"


def test_no_bare_except_clauses():
    for path in _py_files(PACKAGE_DIR):
        for node in ast.walk(_parse(path)):
            if isinstance(node, ast.ExceptHandler):
                assert node.type is not None, f"bare except in {path.relative_to(PROJECT_ROOT)}:{node.lineno}"


def test_migrations_ship_with_the_package():
    sql_files = sorted((PACKAGE_DIR / "migrations").glob("*.sql"))
    assert sql_files, "megamart/migrations must contain the schema"
    schema = sql_files[0].read_text(encoding="utf-8")
    for table in ("users", "products", "categories", "orders", "carts", "wishlists", "addresses", "reviews", "payments"):
        assert re.search(rf"CREATE TABLE IF NOT EXISTS {table}\b", schema), table

    pyproject = (PROJECT_ROOT / "pyproject.toml").read_text(encoding="utf-8")
    assert "migrations/*.sql" in pyproject
