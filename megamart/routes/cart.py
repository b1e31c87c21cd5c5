"""Shopping cart endpoints for the authenticated user.

Responses carry populated item products plus `totalItems` and `subtotal`.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from megamart.guards.auth import get_current_user
from megamart.guards.ids import require_object_id
from megamart.logic.problem_factory import bad_request, not_found
from megamart.logic.repository_carts import (
    add_item,
    clear_cart,
    get_or_create_cart,
    remove_item,
    update_item_quantity,
)
from megamart.logic.repository_products import product_exists
from megamart.models.orders import CartItemAdd, CartItemUpdate

router = APIRouter(prefix="/cart", tags=["Cart"])

_INVALID_ITEM_ID = "Invalid item ID format"


@router.get("", summary="Get the caller's cart")
def get_cart(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return get_or_create_cart(user["_id"])


@router.post("/items", summary="Add an item to the cart")
def post_cart_item(payload: CartItemAdd, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if not payload.product_id:
        raise bad_request("Product ID is required")
    require_object_id(payload.product_id, "Invalid product ID format")
    if not product_exists(payload.product_id):
        raise not_found("Product not found")
    return add_item(user["_id"], payload.product_id, payload.quantity, payload.size, payload.color)


@router.put("/items/{item_id}", summary="Change an item's quantity")
def put_cart_item(
    item_id: str,
    payload: CartItemUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    require_object_id(item_id, _INVALID_ITEM_ID)
    if not payload.quantity or payload.quantity < 1:
        raise bad_request("Valid quantity is required")
    try:
        cart = update_item_quantity(user["_id"], item_id, payload.quantity)
    except LookupError as exc:
        raise not_found(str(exc.args[0]))
    if cart is None:
        raise not_found("Cart not found")
    return cart


@router.delete("/items/{item_id}", summary="Remove an item from the cart")
def delete_cart_item(item_id: str, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    require_object_id(item_id, _INVALID_ITEM_ID)
    cart = remove_item(user["_id"], item_id)
    if cart is None:
        raise not_found("Cart not found")
    return cart


@router.delete("", summary="Clear the cart")
def delete_cart(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    cart = clear_cart(user["_id"])
    if cart is None:
        raise not_found("Cart not found")
    return cart


__all__ = ["router"]
