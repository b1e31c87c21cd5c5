from __future__ import annotations

"""Functional test bootstrap for the MegaMart API.

Points the application at a file-backed SQLite database before any
`megamart` import, applies the packaged migrations once per session and
empties every table between tests so each test starts from a clean store.
"""

import os
import pathlib
from typing import Any, Callable, Dict, Iterator, Tuple

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
# Migrations are applied explicitly below
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"
os.environ["JWT_SECRET"] = "functional-test-secret"
os.environ["APP_ENV"] = "test"

TABLES = (
    "payments",
    "reviews",
    "addresses",
    "wishlist_items",
    "wishlists",
    "cart_items",
    "carts",
    "order_history",
    "order_items",
    "orders",
    "categories",
    "products",
    "users",
)


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap() -> Iterator[None]:
    """Session-level bootstrap: apply migrations once for the shared DB."""
    from megamart.config import reset_config_cache
    from megamart.db.base import get_engine
    from megamart.db.migrations_runner import apply_migrations

    reset_config_cache()
    apply_migrations(get_engine(os.environ["TEST_DATABASE_URL"]))
    yield


@pytest.fixture(autouse=True)
def clean_tables() -> Iterator[None]:
    from sqlalchemy import text as sql_text

    from megamart.db.base import get_engine
    from megamart.logic.events import get_buffered_events

    yield
    with get_engine().begin() as conn:
        for table in TABLES:
            conn.execute(sql_text(f"DELETE FROM {table}"))
    get_buffered_events(clear=True)


@pytest.fixture(scope="session")
def client():
    from fastapi.testclient import TestClient

    from megamart.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def sample_product() -> Callable[..., Dict[str, Any]]:
    def _payload(**overrides: Any) -> Dict[str, Any]:
        body = {
            "name": "Urban Runner Sneakers",
            "description": "Lightweight sneakers for the city.",
            "price": 149.99,
            "originalPrice": 199.99,
            "category": "shoes",
            "image": "https://img.example/sneakers.jpg",
            "sizes": ["8", "9"],
            "colors": [{"name": "Black", "hex": "#000000"}],
        }
        body.update(overrides)
        return body

    return _payload


@pytest.fixture
def create_product(client, sample_product) -> Callable[..., Dict[str, Any]]:
    def _create(**overrides: Any) -> Dict[str, Any]:
        resp = client.post("/api/products", json=sample_product(**overrides))
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest.fixture
def register_user(client) -> Callable[..., Tuple[Dict[str, Any], str]]:
    """Create a user through the API, log in and return (user, bearer token).

    Registration always yields a `user`; other roles are granted through the
    repository, the way operators seed administrators.
    """
    from megamart.logic.repository_users import set_user_role

    counter = {"n": 0}

    def _register(role: str = "user", **overrides: Any) -> Tuple[Dict[str, Any], str]:
        counter["n"] += 1
        n = counter["n"]
        body = {
            "email": f"shopper{n}@example.com",
            "username": f"shopper{n}",
            "password": "s3cret-pass",
            "name": f"Shopper {n}",
        }
        body.update(overrides)
        resp = client.post("/api/users", json=body)
        assert resp.status_code == 201, resp.text
        user = resp.json()
        if role != "user":
            user = set_user_role(user["_id"], role)
        login = client.post(
            "/api/users/login", json={"identifier": body["email"], "password": body["password"]}
        )
        assert login.status_code == 200, login.text
        return user, login.json()["token"]

    return _register


@pytest.fixture
def auth() -> Callable[[str], Dict[str, str]]:
    def _headers(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _headers
