"""Shopping cart data access helpers.

Each user owns at most one cart. Items are unique per (product, size,
color); adding a matching line bumps its quantity instead of adding a row.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from megamart.db.base import get_engine
from megamart.logic.identifiers import new_object_id, utc_now_iso
from megamart.logic.repository_products import product_summaries

CART_PRODUCT_FIELDS = ("name", "image", "price", "category", "inStock")


def _cart_row(conn: Connection, user_id: str) -> Optional[Any]:
    return conn.execute(
        sql_text("SELECT id, user_id, created_at, updated_at FROM carts WHERE user_id = :uid"),
        {"uid": user_id},
    ).mappings().first()


def _create_cart(conn: Connection, user_id: str) -> Any:
    now = utc_now_iso()
    params = {"id": new_object_id(), "user_id": user_id, "created_at": now, "updated_at": now}
    conn.execute(
        sql_text(
            "INSERT INTO carts (id, user_id, created_at, updated_at) "
            "VALUES (:id, :user_id, :created_at, :updated_at)"
        ),
        params,
    )
    return params


def _touch(conn: Connection, cart_id: str) -> None:
    conn.execute(
        sql_text("UPDATE carts SET updated_at = :now WHERE id = :id"),
        {"now": utc_now_iso(), "id": cart_id},
    )


def _load_cart(user_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().connect() as conn:
        cart = _cart_row(conn, user_id)
        if cart is None:
            return None
        items = conn.execute(
            sql_text(
                "SELECT id, product_id, quantity, size, color, added_at FROM cart_items "
                "WHERE cart_id = :cid ORDER BY added_at, id"
            ),
            {"cid": cart["id"]},
        ).mappings().all()
    products = product_summaries((i["product_id"] for i in items), CART_PRODUCT_FIELDS)
    out_items = [
        {
            "_id": i["id"],
            "product": products.get(i["product_id"]),
            "quantity": int(i["quantity"]),
            "size": i["size"],
            "color": i["color"],
            "addedAt": i["added_at"],
        }
        for i in items
    ]
    subtotal = sum(
        (item["product"]["price"] or 0) * item["quantity"] for item in out_items if item["product"]
    )
    return {
        "_id": cart["id"],
        "id": cart["id"],
        "user": cart["user_id"],
        "items": out_items,
        "totalItems": sum(item["quantity"] for item in out_items),
        "subtotal": round(subtotal, 2),
        "createdAt": cart["created_at"],
        "updatedAt": cart["updated_at"],
    }


def get_or_create_cart(user_id: str) -> Dict[str, Any]:
    with get_engine().begin() as conn:
        if _cart_row(conn, user_id) is None:
            _create_cart(conn, user_id)
    cart = _load_cart(user_id)
    if cart is None:  # pragma: no cover - created above
        raise LookupError(user_id)
    return cart


def add_item(
    user_id: str,
    product_id: str,
    quantity: int = 1,
    size: Optional[str] = None,
    color: Optional[str] = None,
) -> Dict[str, Any]:
    """Add a line to the user's cart, creating the cart on first use."""
    with get_engine().begin() as conn:
        cart = _cart_row(conn, user_id) or _create_cart(conn, user_id)
        lines = conn.execute(
            sql_text("SELECT id, product_id, quantity, size, color FROM cart_items WHERE cart_id = :cid"),
            {"cid": cart["id"]},
        ).mappings().all()
        match = next(
            (
                line
                for line in lines
                if line["product_id"] == product_id and line["size"] == size and line["color"] == color
            ),
            None,
        )
        if match is not None:
            conn.execute(
                sql_text("UPDATE cart_items SET quantity = :q WHERE id = :id"),
                {"q": int(match["quantity"]) + quantity, "id": match["id"]},
            )
        else:
            conn.execute(
                sql_text(
                    "INSERT INTO cart_items (id, cart_id, product_id, quantity, size, color, added_at) "
                    "VALUES (:id, :cid, :pid, :q, :size, :color, :at)"
                ),
                {
                    "id": new_object_id(),
                    "cid": cart["id"],
                    "pid": product_id,
                    "q": quantity,
                    "size": size,
                    "color": color,
                    "at": utc_now_iso(),
                },
            )
        _touch(conn, cart["id"])
    return get_or_create_cart(user_id)


def update_item_quantity(user_id: str, item_id: str, quantity: int) -> Optional[Dict[str, Any]]:
    """Set a line's quantity. Raises LookupError naming what is missing."""
    with get_engine().begin() as conn:
        cart = _cart_row(conn, user_id)
        if cart is None:
            raise LookupError("Cart not found")
        result = conn.execute(
            sql_text("UPDATE cart_items SET quantity = :q WHERE id = :id AND cart_id = :cid"),
            {"q": quantity, "id": item_id, "cid": cart["id"]},
        )
        if result.rowcount == 0:
            raise LookupError("Item not found in cart")
        _touch(conn, cart["id"])
    return _load_cart(user_id)


def remove_item(user_id: str, item_id: str) -> Optional[Dict[str, Any]]:
    """Remove a line; returns None when the user has no cart."""
    with get_engine().begin() as conn:
        cart = _cart_row(conn, user_id)
        if cart is None:
            return None
        conn.execute(
            sql_text("DELETE FROM cart_items WHERE id = :id AND cart_id = :cid"),
            {"id": item_id, "cid": cart["id"]},
        )
        _touch(conn, cart["id"])
    return _load_cart(user_id)


def clear_cart(user_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().begin() as conn:
        cart = _cart_row(conn, user_id)
        if cart is None:
            return None
        conn.execute(sql_text("DELETE FROM cart_items WHERE cart_id = :cid"), {"cid": cart["id"]})
        _touch(conn, cart["id"])
    return _load_cart(user_id)


__all__ = [
    "get_or_create_cart",
    "add_item",
    "update_item_quantity",
    "remove_item",
    "clear_cart",
]
