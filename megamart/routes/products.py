"""Product catalogue endpoints.

Listing supports category filtering, free-text search, whitelisted sorting
and page/limit pagination. Unknown ids that are not ObjectId-shaped simply
resolve to 404.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query

from megamart.guards.ids import reject_placeholder_id
from megamart.logic.problem_factory import bad_request, not_found
from megamart.logic.query_helpers import InvalidQueryError, pagination
from megamart.logic.repository_products import (
    create_product,
    delete_product,
    get_product,
    list_categories_in_use,
    list_products,
    update_product,
)
from megamart.models.products import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("/categories", summary="Distinct product categories in use")
def get_product_categories() -> Dict[str, Any]:
    return {"categories": [{"id": c, "name": c} for c in list_categories_in_use()]}


@router.get("", summary="List products")
def get_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    sort: str = "-createdAt",
) -> Dict[str, Any]:
    try:
        products, total = list_products(page, limit, category=category, search=search, sort=sort)
    except InvalidQueryError as exc:
        raise bad_request(str(exc))
    return {"products": products, "pagination": pagination(page, limit, total)}


@router.get("/{product_id}", summary="Get one product")
def get_one_product(product_id: str) -> Dict[str, Any]:
    reject_placeholder_id(product_id, "Invalid product ID")
    product = get_product(product_id)
    if product is None:
        raise not_found("Product not found")
    return product


@router.post("", status_code=201, summary="Create a product")
def post_product(payload: ProductCreate) -> Dict[str, Any]:
    product = create_product(payload.columns())
    logger.info("product_created id=%s category=%s", product["_id"], product["category"])
    return product


@router.put("/{product_id}", summary="Update a product")
def put_product(product_id: str, payload: ProductUpdate) -> Dict[str, Any]:
    product = update_product(product_id, payload.columns(partial=True, nullable=("original_price",)))
    if product is None:
        raise not_found("Product not found")
    return product


@router.delete("/{product_id}", summary="Delete a product")
def remove_product(product_id: str) -> Dict[str, str]:
    if not delete_product(product_id):
        raise not_found("Product not found")
    logger.info("product_deleted id=%s", product_id)
    return {"message": "Product deleted successfully"}


__all__ = ["router"]
