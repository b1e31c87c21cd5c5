"""Category data access helpers.

Categories form a tree through `parent_id`. `level` is 1 for roots and
parent level + 1 otherwise; moving or deleting a category re-levels its
descendants in the same transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from megamart.db.base import get_engine
from megamart.logic.identifiers import new_object_id, slugify, utc_now_iso
from megamart.logic.query_helpers import DuplicateError, as_bool

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, name, slug, description, image, icon, parent_id, level, is_active, sort_order, "
    "meta_title, meta_description, product_count, featured, created_at, updated_at"
)

_PLAIN_FIELDS = (
    "name",
    "slug",
    "description",
    "image",
    "icon",
    "is_active",
    "sort_order",
    "meta_title",
    "meta_description",
    "featured",
)

_DUPLICATE_MESSAGE = "Category name or slug already exists"


class InvalidParentError(ValueError):
    """Raised when a category's parent is unknown or would create a cycle."""


def _to_category(row: Any) -> Dict[str, Any]:
    return {
        "_id": row["id"],
        "id": row["id"],
        "name": row["name"],
        "slug": row["slug"],
        "description": row["description"],
        "image": row["image"],
        "icon": row["icon"],
        "parent": row["parent_id"],
        "level": int(row["level"] or 1),
        "isActive": as_bool(row["is_active"]),
        "sortOrder": int(row["sort_order"] or 0),
        "metaTitle": row["meta_title"],
        "metaDescription": row["meta_description"],
        "productCount": int(row["product_count"] or 0),
        "featured": as_bool(row["featured"]),
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


def _fetch(conn: Connection, category_id: str) -> Optional[Any]:
    return conn.execute(
        sql_text(f"SELECT {_COLUMNS} FROM categories WHERE id = :id"), {"id": category_id}
    ).mappings().first()


def _parent_level(conn: Connection, parent_id: Optional[str], category_id: Optional[str] = None) -> int:
    """Return the parent's level, or 0 for a root. Rejects unknown parents and cycles."""
    if not parent_id:
        return 0
    if parent_id == category_id:
        raise InvalidParentError("A category cannot be its own parent")
    parent = _fetch(conn, parent_id)
    if parent is None:
        raise InvalidParentError("Parent category not found")
    if category_id is not None:
        seen = {parent_id}
        ancestor = parent["parent_id"]
        while ancestor:
            if ancestor == category_id:
                raise InvalidParentError("A category cannot be moved under its own descendant")
            if ancestor in seen:
                break
            seen.add(ancestor)
            row = _fetch(conn, ancestor)
            ancestor = row["parent_id"] if row else None
    return int(parent["level"] or 1)


def _relevel_children(conn: Connection, parent_id: str, parent_level: int) -> None:
    children = conn.execute(
        sql_text("SELECT id FROM categories WHERE parent_id = :pid"), {"pid": parent_id}
    ).fetchall()
    for (child_id,) in children:
        conn.execute(
            sql_text("UPDATE categories SET level = :level WHERE id = :id"),
            {"level": parent_level + 1, "id": child_id},
        )
        _relevel_children(conn, child_id, parent_level + 1)


def list_categories() -> List[Dict[str, Any]]:
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM categories ORDER BY sort_order ASC, name ASC")
        ).mappings().all()
    return [_to_category(r) for r in rows]


def category_tree() -> List[Dict[str, Any]]:
    """Return active categories nested under their parents via `children`."""
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text(
                f"SELECT {_COLUMNS} FROM categories WHERE is_active = :active "
                "ORDER BY sort_order ASC, name ASC"
            ),
            {"active": True},
        ).mappings().all()
    categories = [_to_category(r) for r in rows]
    by_parent: Dict[Optional[str], List[Dict[str, Any]]] = {}
    for cat in categories:
        by_parent.setdefault(cat["parent"], []).append(cat)

    def build(parent_id: Optional[str]) -> List[Dict[str, Any]]:
        return [{**cat, "children": build(cat["_id"])} for cat in by_parent.get(parent_id, [])]

    return build(None)


def category_path(category_id: str) -> Optional[str]:
    """Return `/root-slug/.../slug` for a category, or None if it does not exist."""
    with get_engine().connect() as conn:
        row = _fetch(conn, category_id)
        if row is None:
            return None
        slugs = [row["slug"]]
        seen = {row["id"]}
        parent_id = row["parent_id"]
        while parent_id and parent_id not in seen:
            seen.add(parent_id)
            parent = _fetch(conn, parent_id)
            if parent is None:
                break
            slugs.append(parent["slug"])
            parent_id = parent["parent_id"]
    return "/" + "/".join(reversed(slugs))


def get_category(category_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().connect() as conn:
        row = _fetch(conn, category_id)
    return _to_category(row) if row else None


def create_category(data: Dict[str, Any]) -> Dict[str, Any]:
    now = utc_now_iso()
    params: Dict[str, Any] = {f: data.get(f) for f in _PLAIN_FIELDS}
    params["slug"] = (data.get("slug") or slugify(data["name"])).lower()
    params["is_active"] = bool(data.get("is_active", True))
    params["sort_order"] = int(data.get("sort_order") or 0)
    params["featured"] = bool(data.get("featured", False))
    params.update(
        {
            "id": new_object_id(),
            "parent_id": data.get("parent") or None,
            "product_count": 0,
            "created_at": now,
            "updated_at": now,
        }
    )
    try:
        with get_engine().begin() as conn:
            params["level"] = _parent_level(conn, params["parent_id"]) + 1
            conn.execute(
                sql_text(
                    """
                    INSERT INTO categories (id, name, slug, description, image, icon, parent_id, level,
                                            is_active, sort_order, meta_title, meta_description,
                                            product_count, featured, created_at, updated_at)
                    VALUES (:id, :name, :slug, :description, :image, :icon, :parent_id, :level,
                            :is_active, :sort_order, :meta_title, :meta_description,
                            :product_count, :featured, :created_at, :updated_at)
                    """
                ),
                params,
            )
    except IntegrityError as exc:
        raise DuplicateError(_DUPLICATE_MESSAGE) from exc
    logger.info("category_created id=%s slug=%s level=%s", params["id"], params["slug"], params["level"])
    return _to_category(params)


def update_category(category_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Apply a partial update. A `parent` key (possibly None) moves the category."""
    params: Dict[str, Any] = {k: v for k, v in changes.items() if k in _PLAIN_FIELDS}
    if "slug" in params and params["slug"]:
        params["slug"] = params["slug"].lower()
    try:
        with get_engine().begin() as conn:
            if _fetch(conn, category_id) is None:
                return None
            if "parent" in changes:
                parent_id = changes["parent"] or None
                params["parent_id"] = parent_id
                params["level"] = _parent_level(conn, parent_id, category_id) + 1
            params["updated_at"] = utc_now_iso()
            sets = ", ".join(f"{col} = :{col}" for col in params)
            conn.execute(sql_text(f"UPDATE categories SET {sets} WHERE id = :id"), {**params, "id": category_id})
            if "level" in params:
                _relevel_children(conn, category_id, params["level"])
    except IntegrityError as exc:
        raise DuplicateError(_DUPLICATE_MESSAGE) from exc
    return get_category(category_id)


def delete_category(category_id: str) -> bool:
    """Delete a category; its children become roots at level 1."""
    with get_engine().begin() as conn:
        children = conn.execute(
            sql_text("SELECT id FROM categories WHERE parent_id = :id"), {"id": category_id}
        ).fetchall()
        result = conn.execute(sql_text("DELETE FROM categories WHERE id = :id"), {"id": category_id})
        if result.rowcount == 0:
            return False
        now = utc_now_iso()
        for (child_id,) in children:
            conn.execute(
                sql_text("UPDATE categories SET parent_id = NULL, level = 1, updated_at = :now WHERE id = :id"),
                {"now": now, "id": child_id},
            )
            _relevel_children(conn, child_id, 1)
    return True


__all__ = [
    "InvalidParentError",
    "list_categories",
    "category_tree",
    "category_path",
    "get_category",
    "create_category",
    "update_category",
    "delete_category",
]
