"""Order endpoints.

Orders are returned with `user` populated as `{_id, name, email}` and each
item's `product` populated as `{_id, name, image}`. Every status the order
enters is appended to `orderHistory`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query

from megamart.guards.ids import reject_placeholder_id, require_object_id
from megamart.logic.events import ORDER_CREATED, ORDER_STATUS_CHANGED, publish
from megamart.logic.identifiers import is_valid_object_id
from megamart.logic.problem_factory import not_found
from megamart.logic.query_helpers import pagination
from megamart.logic.repository_orders import (
    create_order,
    delete_order,
    get_order,
    list_orders,
    update_order,
)
from megamart.models.orders import OrderCreate, OrderStatus, OrderUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])

_INVALID_ID = "Invalid order ID format"


@router.get("", summary="List orders, newest first")
def get_orders(
    user_id: Optional[str] = Query(None, alias="userId"),
    status: Optional[OrderStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> Dict[str, Any]:
    if user_id:
        require_object_id(user_id, "Invalid userId format")
    orders, total = list_orders(page, limit, user_id=user_id, status=status)
    return {"orders": orders, "pagination": pagination(page, limit, total)}


@router.get("/{order_id}", summary="Get one order")
def get_one_order(order_id: str) -> Dict[str, Any]:
    reject_placeholder_id(order_id, "Invalid order ID", "Order ID cannot be undefined or null")
    order = get_order(order_id) if is_valid_object_id(order_id) else None
    if order is None:
        raise not_found("Order not found")
    return order


@router.post("", status_code=201, summary="Place an order")
def post_order(payload: OrderCreate) -> Dict[str, Any]:
    if payload.user:
        require_object_id(payload.user, "Invalid user ID format")
    for item in payload.items:
        require_object_id(item.product, "Invalid product ID in items")
    order = create_order(payload.columns())
    publish(
        ORDER_CREATED,
        {"order_id": order["_id"], "status": order["status"], "total_amount": order["totalAmount"]},
    )
    return order


@router.put("/{order_id}", summary="Update an order")
def put_order(order_id: str, payload: OrderUpdate) -> Dict[str, Any]:
    require_object_id(order_id, _INVALID_ID)
    for item in payload.items or []:
        require_object_id(item.product, "Invalid product ID in items")
    changes = payload.columns(partial=True, nullable=("tracking_number", "notes"))
    note = changes.pop("note", None)
    before = get_order(order_id)
    if before is None:
        raise not_found("Order not found")
    order = update_order(order_id, changes, note=note)
    if order is None:
        raise not_found("Order not found")
    if order["status"] != before["status"]:
        publish(
            ORDER_STATUS_CHANGED,
            {"order_id": order_id, "from": before["status"], "to": order["status"]},
        )
    return order


@router.delete("/{order_id}", summary="Delete an order")
def remove_order(order_id: str) -> Dict[str, str]:
    require_object_id(order_id, _INVALID_ID)
    if not delete_order(order_id):
        raise not_found("Order not found")
    logger.info("order_deleted id=%s", order_id)
    return {"message": "Order deleted successfully"}


__all__ = ["router"]
