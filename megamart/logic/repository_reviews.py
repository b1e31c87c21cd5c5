"""Product review data access helpers.

A user may review a product once. Only approved reviews count toward the
product's `rating` and `reviewCount`; every write that can change that set
recomputes both inside the same transaction.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from megamart.db.base import get_engine
from megamart.logic.identifiers import new_object_id, utc_now_iso
from megamart.logic.query_helpers import (
    DuplicateError,
    as_bool,
    dump_json,
    load_json,
    offset_for,
    order_by,
    set_clause,
)
from megamart.logic.repository_products import product_summaries, set_product_rating
from megamart.logic.repository_users import user_summaries

logger = logging.getLogger(__name__)

REVIEW_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "rating": "rating",
    "helpful": "helpful",
}

_COLUMNS = (
    "id, user_id, product_id, order_id, rating, title, comment, images, is_verified, helpful, "
    "reported, status, admin_response, created_at, updated_at"
)

_UPDATABLE = {"rating": None, "title": None, "comment": None, "images": dump_json}


def round_rating(value: float) -> float:
    """Round half up to one decimal place (4.25 -> 4.3)."""
    return math.floor(value * 10 + 0.5) / 10


def _to_review(row: Any) -> Dict[str, Any]:
    return {
        "_id": row["id"],
        "id": row["id"],
        "user": row["user_id"],
        "product": row["product_id"],
        "order": row["order_id"],
        "rating": int(row["rating"]),
        "title": row["title"],
        "comment": row["comment"],
        "images": load_json(row["images"], []),
        "isVerified": as_bool(row["is_verified"]),
        "helpful": int(row["helpful"] or 0),
        "reported": as_bool(row["reported"]),
        "status": row["status"],
        "adminResponse": load_json(row["admin_response"]),
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


def _populate(reviews: List[Dict[str, Any]], *, with_product: bool = True) -> List[Dict[str, Any]]:
    users = user_summaries(r["user"] for r in reviews)
    products = product_summaries((r["product"] for r in reviews), ("name", "image")) if with_product else {}
    for review in reviews:
        user = users.get(review["user"])
        review["user"] = {"_id": user["_id"], "name": user["name"]} if user else None
        if with_product:
            review["product"] = products.get(review["product"])
    return reviews


def _fetch(conn: Connection, review_id: str) -> Optional[Any]:
    return conn.execute(
        sql_text(f"SELECT {_COLUMNS} FROM reviews WHERE id = :id"), {"id": review_id}
    ).mappings().first()


def _approved_stats(conn: Connection, product_id: str) -> Tuple[float, int]:
    row = conn.execute(
        sql_text(
            "SELECT AVG(rating), COUNT(*) FROM reviews WHERE product_id = :pid AND status = :status"
        ),
        {"pid": product_id, "status": "approved"},
    ).first()
    average = float(row[0]) if row and row[0] is not None else 0.0
    count = int(row[1]) if row else 0
    return round_rating(average), count


def recompute_product_rating(conn: Connection, product_id: str) -> Tuple[float, int]:
    rating, count = _approved_stats(conn, product_id)
    set_product_rating(conn, product_id, rating, count)
    logger.info("product_rating_recomputed product_id=%s rating=%s count=%s", product_id, rating, count)
    return rating, count


def list_reviews(
    page: int,
    limit: int,
    *,
    status: str = "approved",
    product_id: Optional[str] = None,
    user_id: Optional[str] = None,
    sort: str = "-createdAt",
) -> Tuple[List[Dict[str, Any]], int]:
    ordering = order_by(sort, REVIEW_SORT_FIELDS)
    clauses = ["status = :status"]
    params: Dict[str, Any] = {"status": status, "limit": limit, "offset": offset_for(page, limit)}
    if product_id:
        clauses.append("product_id = :product_id")
        params["product_id"] = product_id
    if user_id:
        clauses.append("user_id = :user_id")
        params["user_id"] = user_id
    where = "WHERE " + " AND ".join(clauses)
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM reviews {where} {ordering} LIMIT :limit OFFSET :offset"),
            params,
        ).mappings().all()
        total = conn.execute(sql_text(f"SELECT COUNT(*) FROM reviews {where}"), params).scalar_one()
    return _populate([_to_review(r) for r in rows]), int(total)


def product_reviews(
    product_id: str, page: int, limit: int
) -> Tuple[List[Dict[str, Any]], int, Dict[str, Any]]:
    """Return approved reviews for a product, their count and rating stats."""
    params = {"pid": product_id, "status": "approved", "limit": limit, "offset": offset_for(page, limit)}
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text(
                f"SELECT {_COLUMNS} FROM reviews WHERE product_id = :pid AND status = :status "
                "ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset"
            ),
            params,
        ).mappings().all()
        average, total = _approved_stats(conn, product_id)
    reviews = _populate([_to_review(r) for r in rows], with_product=False)
    return reviews, total, {"averageRating": average, "totalReviews": total}


def get_review(review_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().connect() as conn:
        row = _fetch(conn, review_id)
    return _to_review(row) if row else None


def get_review_populated(review_id: str) -> Optional[Dict[str, Any]]:
    review = get_review(review_id)
    return _populate([review], with_product=False)[0] if review else None


def create_review(user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a review and refresh the product rating.

    Raises DuplicateError when the user already reviewed the product.
    """
    now = utc_now_iso()
    params = {
        "id": new_object_id(),
        "user_id": user_id,
        "product_id": data["product"],
        "order_id": data.get("order"),
        "rating": data["rating"],
        "title": data["title"],
        "comment": data["comment"],
        "images": dump_json(data.get("images") or []),
        "is_verified": False,
        "helpful": 0,
        "reported": False,
        "status": "pending",
        "admin_response": None,
        "created_at": now,
        "updated_at": now,
    }
    try:
        with get_engine().begin() as conn:
            existing = conn.execute(
                sql_text("SELECT 1 FROM reviews WHERE user_id = :uid AND product_id = :pid"),
                {"uid": user_id, "pid": params["product_id"]},
            ).first()
            if existing is not None:
                raise DuplicateError("You have already reviewed this product")
            conn.execute(
                sql_text(
                    """
                    INSERT INTO reviews (id, user_id, product_id, order_id, rating, title, comment, images,
                                         is_verified, helpful, reported, status, admin_response,
                                         created_at, updated_at)
                    VALUES (:id, :user_id, :product_id, :order_id, :rating, :title, :comment, :images,
                            :is_verified, :helpful, :reported, :status, :admin_response,
                            :created_at, :updated_at)
                    """
                ),
                params,
            )
            recompute_product_rating(conn, params["product_id"])
    except IntegrityError as exc:
        raise DuplicateError("You have already reviewed this product") from exc
    return _populate([_to_review(params)], with_product=False)[0]


def update_review(review_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    assignments, params = set_clause(changes, _UPDATABLE)
    params.update({"id": review_id, "updated_at": utc_now_iso()})
    sets = f"{assignments}, updated_at = :updated_at" if assignments else "updated_at = :updated_at"
    with get_engine().begin() as conn:
        row = _fetch(conn, review_id)
        if row is None:
            return None
        conn.execute(sql_text(f"UPDATE reviews SET {sets} WHERE id = :id"), params)
        recompute_product_rating(conn, row["product_id"])
    return get_review_populated(review_id)


def delete_review(review_id: str) -> bool:
    with get_engine().begin() as conn:
        row = _fetch(conn, review_id)
        if row is None:
            return False
        conn.execute(sql_text("DELETE FROM reviews WHERE id = :id"), {"id": review_id})
        recompute_product_rating(conn, row["product_id"])
    return True


def mark_helpful(review_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().begin() as conn:
        result = conn.execute(
            sql_text("UPDATE reviews SET helpful = helpful + 1, updated_at = :now WHERE id = :id"),
            {"now": utc_now_iso(), "id": review_id},
        )
    if result.rowcount == 0:
        return None
    return get_review(review_id)


def moderate_review(
    review_id: str,
    status: str,
    *,
    responded_by: str,
    response_comment: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Set a review's moderation status and optional admin response."""
    now = utc_now_iso()
    params: Dict[str, Any] = {"id": review_id, "status": status, "now": now}
    sets = "status = :status, updated_at = :now"
    if response_comment:
        params["admin_response"] = dump_json(
            {"comment": response_comment, "respondedAt": now, "respondedBy": responded_by}
        )
        sets += ", admin_response = :admin_response"
    with get_engine().begin() as conn:
        row = _fetch(conn, review_id)
        if row is None:
            return None
        conn.execute(sql_text(f"UPDATE reviews SET {sets} WHERE id = :id"), params)
        recompute_product_rating(conn, row["product_id"])
    logger.info("review_moderated id=%s status=%s by=%s", review_id, status, responded_by)
    return get_review_populated(review_id)


__all__ = [
    "REVIEW_SORT_FIELDS",
    "round_rating",
    "recompute_product_rating",
    "list_reviews",
    "product_reviews",
    "get_review",
    "get_review_populated",
    "create_review",
    "update_review",
    "delete_review",
    "mark_helpful",
    "moderate_review",
]
