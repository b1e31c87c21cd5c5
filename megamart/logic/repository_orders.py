"""Order data access helpers.

An order is stored across three tables: `orders`, `order_items` (line items
in `line_no` order) and `order_history` (one row per status the order has
entered). Reads return the assembled document with product and user
references populated.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import bindparam, text as sql_text
from sqlalchemy.engine import Connection

from megamart.db.base import get_engine
from megamart.logic.identifiers import new_object_id, utc_now_iso
from megamart.logic.query_helpers import as_float, dump_json, load_json, offset_for, set_clause
from megamart.logic.repository_products import product_summaries
from megamart.logic.repository_users import user_summaries

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, user_id, total_amount, status, payment_method, payment_status, shipping_address, "
    "billing_address, tracking_number, notes, created_at, updated_at"
)

_UPDATABLE = {
    "total_amount": None,
    "status": None,
    "payment_method": None,
    "payment_status": None,
    "shipping_address": dump_json,
    "billing_address": dump_json,
    "tracking_number": None,
    "notes": None,
}

ITEM_PRODUCT_FIELDS = ("name", "image")


def _insert_items(conn: Connection, order_id: str, items: Iterable[Dict[str, Any]]) -> None:
    for line_no, item in enumerate(items, start=1):
        conn.execute(
            sql_text(
                """
                INSERT INTO order_items (id, order_id, line_no, product_id, name, price, quantity,
                                         size, color, image)
                VALUES (:id, :order_id, :line_no, :product_id, :name, :price, :quantity,
                        :size, :color, :image)
                """
            ),
            {
                "id": new_object_id(),
                "order_id": order_id,
                "line_no": line_no,
                "product_id": item["product"],
                "name": item.get("name"),
                "price": item.get("price"),
                "quantity": item["quantity"],
                "size": item.get("size"),
                "color": item.get("color"),
                "image": item.get("image"),
            },
        )


def _append_history(conn: Connection, order_id: str, status: str, note: Optional[str] = None) -> None:
    conn.execute(
        sql_text(
            "INSERT INTO order_history (id, order_id, status, note, recorded_at) "
            "VALUES (:id, :order_id, :status, :note, :at)"
        ),
        {"id": new_object_id(), "order_id": order_id, "status": status, "note": note, "at": utc_now_iso()},
    )


def _children(conn: Connection, table: str, order_ids: List[str], ordering: str) -> Dict[str, List[Any]]:
    if not order_ids:
        return {}
    stmt = sql_text(f"SELECT * FROM {table} WHERE order_id IN :ids ORDER BY {ordering}").bindparams(
        bindparam("ids", expanding=True)
    )
    grouped: Dict[str, List[Any]] = {}
    for row in conn.execute(stmt, {"ids": order_ids}).mappings().all():
        grouped.setdefault(row["order_id"], []).append(row)
    return grouped


_Loaded = Tuple[List[Any], Dict[str, List[Any]], Dict[str, List[Any]]]


def _load(conn: Connection, where: str, params: Dict[str, Any], tail: str = "") -> _Loaded:
    stmt = sql_text(f"SELECT {_COLUMNS} FROM orders {where} {tail}")
    rows = list(conn.execute(stmt, params).mappings().all())
    order_ids = [r["id"] for r in rows]
    items_by_order = _children(conn, "order_items", order_ids, "order_id, line_no")
    history_by_order = _children(conn, "order_history", order_ids, "order_id, recorded_at, id")
    return rows, items_by_order, history_by_order


def _assemble(
    rows: List[Any],
    items_by_order: Dict[str, List[Any]],
    history_by_order: Dict[str, List[Any]],
) -> List[Dict[str, Any]]:
    products = product_summaries(
        (i["product_id"] for items in items_by_order.values() for i in items), ITEM_PRODUCT_FIELDS
    )
    users = user_summaries(r["user_id"] for r in rows)

    orders = []
    for r in rows:
        items = [
            {
                "_id": i["id"],
                "product": products.get(i["product_id"]),
                "name": i["name"],
                "price": as_float(i["price"]),
                "quantity": int(i["quantity"]),
                "size": i["size"],
                "color": i["color"],
                "image": i["image"],
            }
            for i in items_by_order.get(r["id"], [])
        ]
        history = [
            {"_id": h["id"], "status": h["status"], "timestamp": h["recorded_at"], "note": h["note"]}
            for h in history_by_order.get(r["id"], [])
        ]
        orders.append(
            {
                "_id": r["id"],
                "id": r["id"],
                "user": users.get(r["user_id"]) if r["user_id"] else None,
                "items": items,
                "totalAmount": as_float(r["total_amount"]) or 0.0,
                "status": r["status"],
                "paymentMethod": r["payment_method"],
                "paymentStatus": r["payment_status"],
                "shippingAddress": load_json(r["shipping_address"]),
                "billingAddress": load_json(r["billing_address"]),
                "trackingNumber": r["tracking_number"],
                "notes": r["notes"],
                "orderHistory": history,
                "createdAt": r["created_at"],
                "updatedAt": r["updated_at"],
            }
        )
    return orders


def list_orders(
    page: int,
    limit: int,
    *,
    user_id: Optional[str] = None,
    status: Optional[str] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    clauses = []
    params: Dict[str, Any] = {"limit": limit, "offset": offset_for(page, limit)}
    if user_id:
        clauses.append("user_id = :user_id")
        params["user_id"] = user_id
    if status:
        clauses.append("status = :status")
        params["status"] = status
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    with get_engine().connect() as conn:
        loaded = _load(conn, where, params, "ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset")
        total = conn.execute(sql_text(f"SELECT COUNT(*) FROM orders {where}"), params).scalar_one()
    return _assemble(*loaded), int(total)


def get_order(order_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().connect() as conn:
        loaded = _load(conn, "WHERE id = :id", {"id": order_id})
    orders = _assemble(*loaded)
    return orders[0] if orders else None


def get_order_header(order_id: str) -> Optional[Dict[str, Any]]:
    """Return the bare order row (no items or history) as a snake_case dict."""
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text("SELECT id, user_id, status, payment_status, total_amount FROM orders WHERE id = :id"),
            {"id": order_id},
        ).mappings().first()
    return dict(row) if row else None


def create_order(data: Dict[str, Any]) -> Dict[str, Any]:
    now = utc_now_iso()
    order_id = new_object_id()
    status = data.get("status") or "pending"
    params = {
        "id": order_id,
        "user_id": data.get("user"),
        "total_amount": data.get("total_amount") or 0,
        "status": status,
        "payment_method": data.get("payment_method") or "cod",
        "payment_status": data.get("payment_status") or "pending",
        "shipping_address": dump_json(data.get("shipping_address")),
        "billing_address": dump_json(data.get("billing_address")),
        "tracking_number": data.get("tracking_number"),
        "notes": data.get("notes"),
        "created_at": now,
        "updated_at": now,
    }
    with get_engine().begin() as conn:
        conn.execute(
            sql_text(
                """
                INSERT INTO orders (id, user_id, total_amount, status, payment_method, payment_status,
                                    shipping_address, billing_address, tracking_number, notes,
                                    created_at, updated_at)
                VALUES (:id, :user_id, :total_amount, :status, :payment_method, :payment_status,
                        :shipping_address, :billing_address, :tracking_number, :notes,
                        :created_at, :updated_at)
                """
            ),
            params,
        )
        _insert_items(conn, order_id, data.get("items") or [])
        _append_history(conn, order_id, status, "Order placed")
    logger.info("order_created order_id=%s user_id=%s status=%s", order_id, params["user_id"], status)
    order = get_order(order_id)
    if order is None:  # pragma: no cover - written in the same call
        raise LookupError(order_id)
    return order


def update_order(order_id: str, changes: Dict[str, Any], note: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Apply a partial update; `items`, when present, replaces all line items.

    A change of `status` appends an order history entry carrying `note`.
    """
    assignments, params = set_clause(changes, _UPDATABLE)
    params.update({"id": order_id, "updated_at": utc_now_iso()})
    sets = f"{assignments}, updated_at = :updated_at" if assignments else "updated_at = :updated_at"
    with get_engine().begin() as conn:
        current = conn.execute(
            sql_text("SELECT status FROM orders WHERE id = :id"), {"id": order_id}
        ).first()
        if current is None:
            return None
        conn.execute(sql_text(f"UPDATE orders SET {sets} WHERE id = :id"), params)
        if "items" in changes and changes["items"] is not None:
            conn.execute(sql_text("DELETE FROM order_items WHERE order_id = :id"), {"id": order_id})
            _insert_items(conn, order_id, changes["items"])
        new_status = changes.get("status")
        if new_status and new_status != current[0]:
            _append_history(conn, order_id, new_status, note)
            logger.info("order_status_changed order_id=%s from=%s to=%s", order_id, current[0], new_status)
    return get_order(order_id)


def set_order_payment_state(
    conn: Connection,
    order_id: str,
    *,
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    note: Optional[str] = None,
) -> bool:
    """Update an order's status fields inside the caller's transaction.

    Appends a history entry for the resulting order status. Returns False
    when the order does not exist.
    """
    current = conn.execute(sql_text("SELECT status FROM orders WHERE id = :id"), {"id": order_id}).first()
    if current is None:
        return False
    changes: Dict[str, Any] = {}
    if status:
        changes["status"] = status
    if payment_status:
        changes["payment_status"] = payment_status
    assignments, params = set_clause(changes, _UPDATABLE)
    params.update({"id": order_id, "updated_at": utc_now_iso()})
    sets = f"{assignments}, updated_at = :updated_at" if assignments else "updated_at = :updated_at"
    conn.execute(sql_text(f"UPDATE orders SET {sets} WHERE id = :id"), params)
    _append_history(conn, order_id, status or current[0], note)
    return True


def delete_order(order_id: str) -> bool:
    with get_engine().begin() as conn:
        result = conn.execute(sql_text("DELETE FROM orders WHERE id = :id"), {"id": order_id})
        if result.rowcount == 0:
            return False
        conn.execute(sql_text("DELETE FROM order_items WHERE order_id = :id"), {"id": order_id})
        conn.execute(sql_text("DELETE FROM order_history WHERE order_id = :id"), {"id": order_id})
    return True


__all__ = [
    "list_orders",
    "get_order",
    "get_order_header",
    "create_order",
    "update_order",
    "set_order_payment_state",
    "delete_order",
]
