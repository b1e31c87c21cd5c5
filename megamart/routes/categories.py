"""Category endpoints: flat listing, nested tree and single-category reads with path."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter

from megamart.guards.ids import require_object_id
from megamart.logic.problem_factory import bad_request, not_found
from megamart.logic.query_helpers import DuplicateError
from megamart.logic.repository_categories import (
    InvalidParentError,
    category_path,
    category_tree,
    create_category,
    delete_category,
    get_category,
    list_categories,
    update_category,
)
from megamart.models.products import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["Categories"])

_INVALID_ID = "Invalid category ID format"


@router.get("", summary="List categories")
def get_categories() -> List[Dict[str, Any]]:
    return list_categories()


@router.get("/tree", summary="Active categories as a tree")
def get_category_tree() -> List[Dict[str, Any]]:
    return category_tree()


@router.get("/{category_id}", summary="Get one category")
def get_one_category(category_id: str) -> Dict[str, Any]:
    require_object_id(category_id, _INVALID_ID)
    category = get_category(category_id)
    if category is None:
        raise not_found("Category not found")
    return {**category, "path": category_path(category_id)}


@router.post("", status_code=201, summary="Create a category")
def post_category(payload: CategoryCreate) -> Dict[str, Any]:
    data = payload.columns()
    if data.get("parent"):
        require_object_id(data["parent"], "Invalid parent category ID format")
    try:
        return create_category(data)
    except (DuplicateError, InvalidParentError) as exc:
        raise bad_request(str(exc))


@router.put("/{category_id}", summary="Update a category")
def put_category(category_id: str, payload: CategoryUpdate) -> Dict[str, Any]:
    require_object_id(category_id, _INVALID_ID)
    changes = payload.columns(partial=True, nullable=("parent",))
    if changes.get("parent"):
        require_object_id(changes["parent"], "Invalid parent category ID format")
    try:
        category = update_category(category_id, changes)
    except (DuplicateError, InvalidParentError) as exc:
        raise bad_request(str(exc))
    if category is None:
        raise not_found("Category not found")
    return category


@router.delete("/{category_id}", summary="Delete a category")
def remove_category(category_id: str) -> Dict[str, str]:
    require_object_id(category_id, _INVALID_ID)
    if not delete_category(category_id):
        raise not_found("Category not found")
    logger.info("category_deleted id=%s", category_id)
    return {"message": "Category deleted successfully"}


__all__ = ["router"]
