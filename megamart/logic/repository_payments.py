"""Mock payment data access helpers.

Payments belong to the user who created them and reference one of that
user's orders. Status changes made by an administrator are mirrored onto
the order (completed -> paid, failed -> payment failed) in the same
transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from megamart.db.base import get_engine
from megamart.logic.identifiers import new_object_id, new_transaction_id, utc_now_iso
from megamart.logic.query_helpers import (
    DuplicateError,
    as_float,
    dump_json,
    load_json,
    offset_for,
    order_by,
)
from megamart.logic.repository_orders import get_order, set_order_payment_state

logger = logging.getLogger(__name__)

PAYMENT_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "amount": "amount",
    "status": "status",
}

_COLUMNS = (
    "id, order_id, user_id, amount, currency, method, status, transaction_id, gateway_transaction_id, "
    "gateway, payment_data, refund_amount, refund_reason, refunded_at, refunded_by, failure_reason, "
    "metadata, ip_address, user_agent, created_at, updated_at"
)


def format_amount(currency: str, amount: float) -> str:
    return f"{currency} {amount:.2f}"


def _to_payment(row: Any) -> Dict[str, Any]:
    amount = as_float(row["amount"]) or 0.0
    return {
        "_id": row["id"],
        "id": row["id"],
        "order": row["order_id"],
        "user": row["user_id"],
        "amount": amount,
        "currency": row["currency"],
        "method": row["method"],
        "status": row["status"],
        "transactionId": row["transaction_id"],
        "gatewayTransactionId": row["gateway_transaction_id"],
        "gateway": row["gateway"],
        "paymentData": load_json(row["payment_data"], {}),
        "refundAmount": as_float(row["refund_amount"]) or 0.0,
        "refundReason": row["refund_reason"],
        "refundedAt": row["refunded_at"],
        "refundedBy": row["refunded_by"],
        "failureReason": row["failure_reason"],
        "metadata": load_json(row["metadata"], {}),
        "ipAddress": row["ip_address"],
        "userAgent": row["user_agent"],
        "formattedAmount": format_amount(row["currency"], amount),
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


def _populate_orders(payments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace order ids with `{_id, items, totalAmount, status}`."""
    cache: Dict[str, Optional[Dict[str, Any]]] = {}
    for payment in payments:
        order_id = payment["order"]
        if order_id not in cache:
            order = get_order(order_id)
            cache[order_id] = (
                {
                    "_id": order["_id"],
                    "items": order["items"],
                    "totalAmount": order["totalAmount"],
                    "status": order["status"],
                }
                if order
                else None
            )
        payment["order"] = cache[order_id]
    return payments


def _fetch(conn: Connection, payment_id: str) -> Optional[Any]:
    return conn.execute(
        sql_text(f"SELECT {_COLUMNS} FROM payments WHERE id = :id"), {"id": payment_id}
    ).mappings().first()


def list_payments(
    user_id: str,
    page: int,
    limit: int,
    *,
    status: Optional[str] = None,
    method: Optional[str] = None,
    sort: str = "-createdAt",
) -> Tuple[List[Dict[str, Any]], int]:
    ordering = order_by(sort, PAYMENT_SORT_FIELDS)
    clauses = ["user_id = :user_id"]
    params: Dict[str, Any] = {"user_id": user_id, "limit": limit, "offset": offset_for(page, limit)}
    if status:
        clauses.append("status = :status")
        params["status"] = status
    if method:
        clauses.append("method = :method")
        params["method"] = method
    where = "WHERE " + " AND ".join(clauses)
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM payments {where} {ordering} LIMIT :limit OFFSET :offset"),
            params,
        ).mappings().all()
        total = conn.execute(sql_text(f"SELECT COUNT(*) FROM payments {where}"), params).scalar_one()
    return _populate_orders([_to_payment(r) for r in rows]), int(total)


def get_payment(payment_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Return a payment with its order populated; `user_id` scopes the lookup."""
    with get_engine().connect() as conn:
        row = _fetch(conn, payment_id)
    if row is None or (user_id is not None and row["user_id"] != user_id):
        return None
    return _populate_orders([_to_payment(row)])[0]


def create_payment(user_id: str, data: Dict[str, Any], default_currency: str) -> Dict[str, Any]:
    """Record a payment against one of the user's orders.

    Cash on delivery starts `pending`; every other method starts `processing`.
    """
    now = utc_now_iso()
    method = data["method"]
    params = {
        "id": new_object_id(),
        "order_id": data["order_id"],
        "user_id": user_id,
        "amount": data["amount"],
        "currency": (data.get("currency") or default_currency).upper(),
        "method": method,
        "status": "pending" if method == "cod" else "processing",
        "transaction_id": data.get("transaction_id") or new_transaction_id(),
        "gateway_transaction_id": data.get("gateway_transaction_id"),
        "gateway": data.get("gateway"),
        "payment_data": dump_json(data.get("payment_data") or {}),
        "refund_amount": 0,
        "refund_reason": None,
        "refunded_at": None,
        "refunded_by": None,
        "failure_reason": None,
        "metadata": dump_json(data.get("metadata") or {}),
        "ip_address": data.get("ip_address"),
        "user_agent": data.get("user_agent"),
        "created_at": now,
        "updated_at": now,
    }
    try:
        with get_engine().begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO payments (id, order_id, user_id, amount, currency, method, status,
                                          transaction_id, gateway_transaction_id, gateway, payment_data,
                                          refund_amount, refund_reason, refunded_at, refunded_by,
                                          failure_reason, metadata, ip_address, user_agent,
                                          created_at, updated_at)
                    VALUES (:id, :order_id, :user_id, :amount, :currency, :method, :status,
                            :transaction_id, :gateway_transaction_id, :gateway, :payment_data,
                            :refund_amount, :refund_reason, :refunded_at, :refunded_by,
                            :failure_reason, :metadata, :ip_address, :user_agent,
                            :created_at, :updated_at)
                    """
                ),
                params,
            )
    except IntegrityError as exc:
        raise DuplicateError("Transaction ID already exists") from exc
    logger.info(
        "payment_created id=%s order_id=%s method=%s status=%s",
        params["id"],
        params["order_id"],
        method,
        params["status"],
    )
    return _populate_orders([_to_payment(params)])[0]


def update_payment_status(
    payment_id: str,
    status: str,
    *,
    actor_id: str,
    failure_reason: Optional[str] = None,
    refund_amount: Optional[float] = None,
    refund_reason: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Set a payment's status and apply its side effects to the order."""
    now = utc_now_iso()
    with get_engine().begin() as conn:
        row = _fetch(conn, payment_id)
        if row is None:
            return None
        params: Dict[str, Any] = {"id": payment_id, "status": status, "now": now}
        sets = ["status = :status", "updated_at = :now"]
        if status == "failed" and failure_reason:
            sets.append("failure_reason = :failure_reason")
            params["failure_reason"] = failure_reason
        if status == "refunded":
            sets += [
                "refund_amount = :refund_amount",
                "refund_reason = :refund_reason",
                "refunded_at = :now",
                "refunded_by = :refunded_by",
            ]
            params.update(
                {
                    "refund_amount": refund_amount if refund_amount else as_float(row["amount"]),
                    "refund_reason": refund_reason,
                    "refunded_by": actor_id,
                }
            )
        conn.execute(sql_text(f"UPDATE payments SET {', '.join(sets)} WHERE id = :id"), params)

        note = f"Payment {row['transaction_id']} {status}"
        if status == "completed":
            set_order_payment_state(conn, row["order_id"], status="paid", payment_status="paid", note=note)
        elif status == "failed":
            set_order_payment_state(conn, row["order_id"], payment_status="failed", note=note)
    logger.info("payment_status_updated id=%s status=%s by=%s", payment_id, status, actor_id)
    return get_payment(payment_id)


def payment_stats(start: Optional[str] = None, end: Optional[str] = None) -> Dict[str, Any]:
    """Aggregate payment totals, restricted to [start, end] when both are given."""
    where = ""
    params: Dict[str, Any] = {"completed": "completed", "failed": "failed"}
    if start and end:
        where = "WHERE created_at >= :start AND created_at <= :end"
        params.update({"start": start, "end": end})
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text(
                f"""
                SELECT COUNT(*) AS total_payments,
                       COALESCE(SUM(amount), 0) AS total_amount,
                       COALESCE(SUM(CASE WHEN status = :completed THEN 1 ELSE 0 END), 0) AS successful_payments,
                       COALESCE(SUM(CASE WHEN status = :completed THEN amount ELSE 0 END), 0) AS successful_amount,
                       COALESCE(SUM(CASE WHEN status = :failed THEN 1 ELSE 0 END), 0) AS failed_payments,
                       COALESCE(SUM(refund_amount), 0) AS refunded_amount
                FROM payments {where}
                """
            ),
            params,
        ).mappings().first()
    return {
        "totalPayments": int(row["total_payments"]),
        "totalAmount": float(row["total_amount"]),
        "successfulPayments": int(row["successful_payments"]),
        "successfulAmount": float(row["successful_amount"]),
        "failedPayments": int(row["failed_payments"]),
        "refundedAmount": float(row["refunded_amount"]),
    }


__all__ = [
    "PAYMENT_SORT_FIELDS",
    "format_amount",
    "list_payments",
    "get_payment",
    "create_payment",
    "update_payment_status",
    "payment_stats",
]
