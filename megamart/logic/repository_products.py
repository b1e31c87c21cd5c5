"""Product catalogue data access helpers.

Search is a case-insensitive substring match over name, description and
category. `rating` and `reviewCount` are maintained by the review flows via
`set_product_rating` and are not client-writable after creation.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import bindparam, text as sql_text
from sqlalchemy.engine import Connection

from megamart.db.base import get_engine
from megamart.logic.identifiers import new_object_id, utc_now_iso
from megamart.logic.query_helpers import (
    LIKE_ESCAPE,
    as_bool,
    as_float,
    dump_json,
    like_pattern,
    load_json,
    offset_for,
    order_by,
    set_clause,
)

PRODUCT_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "price": "price",
    "name": "name",
    "rating": "rating",
}

_COLUMNS = (
    "id, name, description, price, original_price, category, image, in_stock, sizes, colors, tags, "
    "rating, review_count, created_at, updated_at"
)

_UPDATABLE = {
    "name": None,
    "description": None,
    "price": None,
    "original_price": None,
    "category": None,
    "image": None,
    "in_stock": None,
    "sizes": dump_json,
    "colors": dump_json,
    "tags": dump_json,
}


def _to_product(row: Any) -> Dict[str, Any]:
    return {
        "_id": row["id"],
        "id": row["id"],
        "name": row["name"],
        "description": row["description"],
        "price": as_float(row["price"]),
        "originalPrice": as_float(row["original_price"]),
        "category": row["category"],
        "image": row["image"],
        "inStock": as_bool(row["in_stock"]),
        "sizes": load_json(row["sizes"], []),
        "colors": load_json(row["colors"], []),
        "tags": load_json(row["tags"], []),
        "rating": as_float(row["rating"]) or 0.0,
        "reviewCount": int(row["review_count"] or 0),
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


def list_categories_in_use() -> List[str]:
    with get_engine().connect() as conn:
        rows = conn.execute(sql_text("SELECT DISTINCT category FROM products ORDER BY category")).fetchall()
    return [str(r[0]) for r in rows]


def list_products(
    page: int,
    limit: int,
    *,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "-createdAt",
) -> Tuple[List[Dict[str, Any]], int]:
    """Return one page of products and the total match count.

    Raises InvalidQueryError for an unsupported sort field.
    """
    ordering = order_by(sort, PRODUCT_SORT_FIELDS)
    clauses = []
    params: Dict[str, Any] = {"limit": limit, "offset": offset_for(page, limit)}
    if category:
        clauses.append("category = :category")
        params["category"] = category
    if search:
        clauses.append(
            f"(LOWER(name) LIKE :pat {LIKE_ESCAPE} OR LOWER(description) LIKE :pat {LIKE_ESCAPE}"
            f" OR LOWER(category) LIKE :pat {LIKE_ESCAPE})"
        )
        params["pat"] = like_pattern(search)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM products {where} {ordering} LIMIT :limit OFFSET :offset"),
            params,
        ).mappings().all()
        total = conn.execute(sql_text(f"SELECT COUNT(*) FROM products {where}"), params).scalar_one()
    return [_to_product(r) for r in rows], int(total)


def get_product(product_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM products WHERE id = :id"), {"id": product_id}
        ).mappings().first()
    return _to_product(row) if row else None


def create_product(data: Dict[str, Any]) -> Dict[str, Any]:
    now = utc_now_iso()
    params = {
        "id": new_object_id(),
        "name": data["name"],
        "description": data["description"],
        "price": data["price"],
        "original_price": data.get("original_price"),
        "category": data["category"],
        "image": data["image"],
        "in_stock": bool(data.get("in_stock", True)),
        "sizes": dump_json(data.get("sizes") or []),
        "colors": dump_json(data.get("colors") or []),
        "tags": dump_json(data.get("tags") or []),
        "rating": data.get("rating") or 0,
        "review_count": data.get("review_count") or 0,
        "created_at": now,
        "updated_at": now,
    }
    with get_engine().begin() as conn:
        conn.execute(
            sql_text(
                """
                INSERT INTO products (id, name, description, price, original_price, category, image,
                                      in_stock, sizes, colors, tags, rating, review_count,
                                      created_at, updated_at)
                VALUES (:id, :name, :description, :price, :original_price, :category, :image,
                        :in_stock, :sizes, :colors, :tags, :rating, :review_count,
                        :created_at, :updated_at)
                """
            ),
            params,
        )
    return _to_product(params)


def update_product(product_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    assignments, params = set_clause(changes, _UPDATABLE)
    params.update({"id": product_id, "updated_at": utc_now_iso()})
    sets = f"{assignments}, updated_at = :updated_at" if assignments else "updated_at = :updated_at"
    with get_engine().begin() as conn:
        result = conn.execute(sql_text(f"UPDATE products SET {sets} WHERE id = :id"), params)
    if result.rowcount == 0:
        return None
    return get_product(product_id)


def delete_product(product_id: str) -> bool:
    with get_engine().begin() as conn:
        result = conn.execute(sql_text("DELETE FROM products WHERE id = :id"), {"id": product_id})
    return result.rowcount > 0


def product_exists(product_id: str) -> bool:
    with get_engine().connect() as conn:
        row = conn.execute(sql_text("SELECT 1 FROM products WHERE id = :id"), {"id": product_id}).first()
    return row is not None


def set_product_rating(conn: Connection, product_id: str, rating: float, review_count: int) -> None:
    conn.execute(
        sql_text(
            "UPDATE products SET rating = :rating, review_count = :count, updated_at = :now WHERE id = :id"
        ),
        {"rating": rating, "count": review_count, "now": utc_now_iso(), "id": product_id},
    )


def product_summaries(product_ids: Iterable[str], fields: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """Return id -> {_id, <fields>} for populating product references.

    `fields` are public camelCase names of product attributes.
    """
    ids = sorted({p for p in product_ids if p})
    if not ids:
        return {}
    wanted = list(fields)
    stmt = sql_text(f"SELECT {_COLUMNS} FROM products WHERE id IN :ids").bindparams(
        bindparam("ids", expanding=True)
    )
    with get_engine().connect() as conn:
        rows = conn.execute(stmt, {"ids": ids}).mappings().all()
    out: Dict[str, Dict[str, Any]] = {}
    for r in rows:
        product = _to_product(r)
        out[product["_id"]] = {"_id": product["_id"], **{f: product.get(f) for f in wanted}}
    return out


__all__ = [
    "PRODUCT_SORT_FIELDS",
    "list_categories_in_use",
    "list_products",
    "get_product",
    "create_product",
    "update_product",
    "delete_product",
    "product_exists",
    "set_product_rating",
    "product_summaries",
]
