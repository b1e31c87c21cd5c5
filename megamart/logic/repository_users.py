"""User account data access helpers.

Password hashes never leave this module except through
`find_login_candidate`, which the login route uses for verification.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import bindparam, text as sql_text
from sqlalchemy.exc import IntegrityError

from megamart.db.base import get_engine
from megamart.logic.identifiers import new_object_id, utc_now_iso
from megamart.logic.query_helpers import (
    LIKE_ESCAPE,
    DuplicateError,
    as_bool,
    dump_json,
    like_pattern,
    load_json,
    offset_for,
    set_clause,
)

logger = logging.getLogger(__name__)

_PUBLIC_COLUMNS = "id, email, username, name, role, is_active, profile, preferences, created_at, updated_at"

_UPDATABLE = {
    "email": None,
    "username": None,
    "name": None,
    "role": None,
    "is_active": None,
    "profile": dump_json,
    "preferences": dump_json,
}

_DEFAULT_PREFERENCES = {"newsletter": True, "notifications": True}


def _to_user(row: Any) -> Dict[str, Any]:
    return {
        "_id": row["id"],
        "id": row["id"],
        "email": row["email"],
        "username": row["username"],
        "name": row["name"],
        "role": row["role"],
        "isActive": as_bool(row["is_active"]),
        "profile": load_json(row["profile"], {}),
        "preferences": load_json(row["preferences"], dict(_DEFAULT_PREFERENCES)),
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


def list_users(page: int, limit: int, search: Optional[str] = None) -> Tuple[List[Dict[str, Any]], int]:
    where = ""
    params: Dict[str, Any] = {"limit": limit, "offset": offset_for(page, limit)}
    if search:
        where = (
            f"WHERE LOWER(email) LIKE :pat {LIKE_ESCAPE}"
            f" OR LOWER(name) LIKE :pat {LIKE_ESCAPE}"
            f" OR LOWER(COALESCE(username, '')) LIKE :pat {LIKE_ESCAPE}"
        )
        params["pat"] = like_pattern(search)
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text(
                f"SELECT {_PUBLIC_COLUMNS} FROM users {where} "
                "ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset"
            ),
            params,
        ).mappings().all()
        total = conn.execute(sql_text(f"SELECT COUNT(*) FROM users {where}"), params).scalar_one()
    return [_to_user(r) for r in rows], int(total)


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE id = :id"),
            {"id": user_id},
        ).mappings().first()
    return _to_user(row) if row else None


def find_login_candidate(identifier: str) -> Optional[Tuple[Dict[str, Any], str]]:
    """Return (user, password_hash) for an email or username match."""
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text(
                f"SELECT {_PUBLIC_COLUMNS}, password_hash FROM users "
                "WHERE email = :email OR username = :ident LIMIT 1"
            ),
            {"email": identifier.lower(), "ident": identifier},
        ).mappings().first()
    if not row:
        return None
    return _to_user(row), str(row["password_hash"])


def create_user(data: Dict[str, Any], password_hash: str, role: str = "user") -> Dict[str, Any]:
    now = utc_now_iso()
    user_id = new_object_id()
    params = {
        "id": user_id,
        "email": data["email"],
        "username": data.get("username"),
        "password_hash": password_hash,
        "name": data["name"],
        "role": role,
        "is_active": bool(data.get("is_active", True)),
        "profile": dump_json(data.get("profile") or {}),
        "preferences": dump_json(data.get("preferences") or dict(_DEFAULT_PREFERENCES)),
        "created_at": now,
        "updated_at": now,
    }
    try:
        with get_engine().begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO users (id, email, username, password_hash, name, role, is_active,
                                       profile, preferences, created_at, updated_at)
                    VALUES (:id, :email, :username, :password_hash, :name, :role, :is_active,
                            :profile, :preferences, :created_at, :updated_at)
                    """
                ),
                params,
            )
    except IntegrityError as exc:
        raise DuplicateError("Email or username already exists") from exc
    return _to_user(params)


def update_user(user_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    assignments, params = set_clause(changes, _UPDATABLE)
    params.update({"id": user_id, "updated_at": utc_now_iso()})
    sets = f"{assignments}, updated_at = :updated_at" if assignments else "updated_at = :updated_at"
    try:
        with get_engine().begin() as conn:
            result = conn.execute(sql_text(f"UPDATE users SET {sets} WHERE id = :id"), params)
    except IntegrityError as exc:
        raise DuplicateError("Email or username already exists") from exc
    if result.rowcount == 0:
        return None
    return get_user(user_id)


def set_user_role(user_id: str, role: str) -> Optional[Dict[str, Any]]:
    """Grant or revoke a role outside the public API (seeding, tests, operators)."""
    user = update_user(user_id, {"role": role})
    if user is not None:
        logger.info("user_role_set id=%s role=%s", user_id, role)
    return user


def delete_user(user_id: str) -> bool:
    with get_engine().begin() as conn:
        result = conn.execute(sql_text("DELETE FROM users WHERE id = :id"), {"id": user_id})
    return result.rowcount > 0


def user_summaries(user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """Return id -> {_id, name, email} for populating references."""
    ids = sorted({u for u in user_ids if u})
    if not ids:
        return {}
    stmt = sql_text("SELECT id, name, email FROM users WHERE id IN :ids").bindparams(
        bindparam("ids", expanding=True)
    )
    with get_engine().connect() as conn:
        rows = conn.execute(stmt, {"ids": ids}).mappings().all()
    return {r["id"]: {"_id": r["id"], "name": r["name"], "email": r["email"]} for r in rows}


__all__ = [
    "list_users",
    "get_user",
    "find_login_candidate",
    "create_user",
    "update_user",
    "set_user_role",
    "delete_user",
    "user_summaries",
]
