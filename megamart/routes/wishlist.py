"""Wishlist endpoints keyed by user id."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter

from megamart.guards.ids import require_object_id
from megamart.logic.problem_factory import bad_request, not_found
from megamart.logic.query_helpers import DuplicateError
from megamart.logic.repository_wishlists import (
    add_to_wishlist,
    delete_wishlist,
    get_wishlist,
    remove_from_wishlist,
)
from megamart.models.orders import WishlistAdd

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])

_INVALID_USER_ID = "Invalid user ID format"


@router.get("/{user_id}", summary="Get a user's wishlist")
def get_user_wishlist(user_id: str) -> Dict[str, Any]:
    require_object_id(user_id, _INVALID_USER_ID)
    return get_wishlist(user_id) or {"items": []}


@router.post("", status_code=201, summary="Add a product to a wishlist")
def post_wishlist_item(payload: WishlistAdd) -> Dict[str, Any]:
    require_object_id(payload.user_id, _INVALID_USER_ID)
    require_object_id(payload.product_id, "Invalid product ID format")
    try:
        return add_to_wishlist(payload.user_id, payload.product_id)
    except DuplicateError as exc:
        raise bad_request(str(exc))


@router.delete("/{user_id}/{product_id}", summary="Remove a product from a wishlist")
def delete_wishlist_item(user_id: str, product_id: str) -> Dict[str, Any]:
    require_object_id(user_id, _INVALID_USER_ID)
    require_object_id(product_id, "Invalid product ID format")
    wishlist = remove_from_wishlist(user_id, product_id)
    if wishlist is None:
        raise not_found("Wishlist not found")
    return wishlist


@router.delete("/{user_id}", summary="Clear a wishlist")
def clear_user_wishlist(user_id: str) -> Dict[str, str]:
    require_object_id(user_id, _INVALID_USER_ID)
    if not delete_wishlist(user_id):
        raise not_found("Wishlist not found")
    logger.info("wishlist_cleared user_id=%s", user_id)
    return {"message": "Wishlist cleared successfully"}


__all__ = ["router"]
