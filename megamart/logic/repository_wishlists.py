"""Wishlist data access helpers."""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from megamart.db.base import get_engine
from megamart.logic.identifiers import new_object_id, utc_now_iso
from megamart.logic.query_helpers import DuplicateError
from megamart.logic.repository_products import product_summaries

WISHLIST_PRODUCT_FIELDS = ("name", "image", "price", "category")


def _wishlist_row(conn: Connection, user_id: str) -> Optional[Any]:
    return conn.execute(
        sql_text("SELECT id, user_id, created_at, updated_at FROM wishlists WHERE user_id = :uid"),
        {"uid": user_id},
    ).mappings().first()


def get_wishlist(user_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().connect() as conn:
        wishlist = _wishlist_row(conn, user_id)
        if wishlist is None:
            return None
        items = conn.execute(
            sql_text(
                "SELECT id, product_id, added_at FROM wishlist_items "
                "WHERE wishlist_id = :wid ORDER BY added_at, id"
            ),
            {"wid": wishlist["id"]},
        ).mappings().all()
    products = product_summaries((i["product_id"] for i in items), WISHLIST_PRODUCT_FIELDS)
    return {
        "_id": wishlist["id"],
        "id": wishlist["id"],
        "user": wishlist["user_id"],
        "items": [
            {"_id": i["id"], "product": products.get(i["product_id"]), "addedAt": i["added_at"]}
            for i in items
        ],
        "createdAt": wishlist["created_at"],
        "updatedAt": wishlist["updated_at"],
    }


def add_to_wishlist(user_id: str, product_id: str) -> Dict[str, Any]:
    """Add a product, creating the wishlist on first use.

    Raises DuplicateError when the product is already listed.
    """
    now = utc_now_iso()
    try:
        with get_engine().begin() as conn:
            wishlist = _wishlist_row(conn, user_id)
            if wishlist is None:
                wishlist_id = new_object_id()
                conn.execute(
                    sql_text(
                        "INSERT INTO wishlists (id, user_id, created_at, updated_at) "
                        "VALUES (:id, :uid, :now, :now)"
                    ),
                    {"id": wishlist_id, "uid": user_id, "now": now},
                )
            else:
                wishlist_id = wishlist["id"]
            conn.execute(
                sql_text(
                    "INSERT INTO wishlist_items (id, wishlist_id, product_id, added_at) "
                    "VALUES (:id, :wid, :pid, :now)"
                ),
                {"id": new_object_id(), "wid": wishlist_id, "pid": product_id, "now": now},
            )
            conn.execute(
                sql_text("UPDATE wishlists SET updated_at = :now WHERE id = :id"),
                {"now": now, "id": wishlist_id},
            )
    except IntegrityError as exc:
        raise DuplicateError("Product already in wishlist") from exc
    wishlist_doc = get_wishlist(user_id)
    if wishlist_doc is None:  # pragma: no cover - written above
        raise LookupError(user_id)
    return wishlist_doc


def remove_from_wishlist(user_id: str, product_id: str) -> Optional[Dict[str, Any]]:
    """Remove a product; returns None when the user has no wishlist."""
    with get_engine().begin() as conn:
        wishlist = _wishlist_row(conn, user_id)
        if wishlist is None:
            return None
        conn.execute(
            sql_text("DELETE FROM wishlist_items WHERE wishlist_id = :wid AND product_id = :pid"),
            {"wid": wishlist["id"], "pid": product_id},
        )
        conn.execute(
            sql_text("UPDATE wishlists SET updated_at = :now WHERE id = :id"),
            {"now": utc_now_iso(), "id": wishlist["id"]},
        )
    return get_wishlist(user_id)


def delete_wishlist(user_id: str) -> bool:
    with get_engine().begin() as conn:
        wishlist = _wishlist_row(conn, user_id)
        if wishlist is None:
            return False
        conn.execute(sql_text("DELETE FROM wishlist_items WHERE wishlist_id = :wid"), {"wid": wishlist["id"]})
        conn.execute(sql_text("DELETE FROM wishlists WHERE id = :id"), {"id": wishlist["id"]})
    return True


__all__ = ["get_wishlist", "add_to_wishlist", "remove_from_wishlist", "delete_wishlist"]
