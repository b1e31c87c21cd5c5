"""Mock payment endpoints.

Payment records are scoped to the authenticated caller. Administrators move
payments between statuses and read aggregate statistics; gateway webhooks
are acknowledged without authentication.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from megamart.config import get_config
from megamart.guards.auth import get_current_user, require_admin
from megamart.guards.ids import require_object_id
from megamart.logic.events import (
    PAYMENT_CREATED,
    PAYMENT_STATUS_UPDATED,
    PAYMENT_WEBHOOK_RECEIVED,
    publish,
)
from megamart.logic.identifiers import to_utc_iso
from megamart.logic.problem_factory import bad_request, not_found
from megamart.logic.query_helpers import DuplicateError, InvalidQueryError, pagination
from megamart.logic.repository_orders import get_order_header
from megamart.logic.repository_payments import (
    create_payment,
    get_payment,
    list_payments,
    payment_stats,
    update_payment_status,
)
from megamart.models.payments import PaymentCreate, PaymentMethod, PaymentStatus, PaymentStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])

_INVALID_ID = "Invalid payment ID format"


def _parse_date(value: Optional[str], name: str) -> Optional[str]:
    if not value:
        return None
    try:
        return to_utc_iso(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        raise bad_request(f"Invalid {name}: {value}")


@router.get("", summary="List the caller's payments")
def get_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[PaymentStatus] = None,
    method: Optional[PaymentMethod] = None,
    sort: str = "-createdAt",
    user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        payments, total = list_payments(user["_id"], page, limit, status=status, method=method, sort=sort)
    except InvalidQueryError as exc:
        raise bad_request(str(exc))
    return {"payments": payments, "pagination": pagination(page, limit, total)}


@router.get("/admin/stats", summary="Payment statistics")
def get_payment_stats(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _admin: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, Any]:
    return payment_stats(_parse_date(start_date, "startDate"), _parse_date(end_date, "endDate"))


@router.get("/{payment_id}", summary="Get one of the caller's payments")
def get_one_payment(payment_id: str, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    require_object_id(payment_id, _INVALID_ID)
    payment = get_payment(payment_id, user_id=user["_id"])
    if payment is None:
        raise not_found("Payment not found")
    return payment


@router.post("", status_code=201, summary="Record a payment for one of the caller's orders")
def post_payment(
    payload: PaymentCreate,
    request: Request,
    user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    require_object_id(payload.order_id, "Invalid order ID format")
    order = get_order_header(payload.order_id)
    if order is None or order["user_id"] != user["_id"]:
        raise not_found("Order not found")
    data = payload.columns()
    data["ip_address"] = request.client.host if request.client else None
    data["user_agent"] = request.headers.get("user-agent")
    try:
        payment = create_payment(user["_id"], data, get_config().store.default_currency)
    except DuplicateError as exc:
        raise bad_request(str(exc))
    publish(
        PAYMENT_CREATED,
        {"payment_id": payment["_id"], "order_id": payload.order_id, "status": payment["status"]},
    )
    return payment


@router.put("/{payment_id}/status", summary="Change a payment's status")
def put_payment_status(
    payment_id: str,
    payload: PaymentStatusUpdate,
    admin: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, Any]:
    require_object_id(payment_id, _INVALID_ID)
    payment = update_payment_status(
        payment_id,
        payload.status,
        actor_id=admin["_id"],
        failure_reason=payload.failure_reason,
        refund_amount=payload.refund_amount,
        refund_reason=payload.refund_reason,
    )
    if payment is None:
        raise not_found("Payment not found")
    publish(PAYMENT_STATUS_UPDATED, {"payment_id": payment_id, "status": payload.status})
    return payment


@router.post("/webhook/{gateway}", summary="Acknowledge a payment gateway webhook")
def post_webhook(gateway: str, body: Optional[Dict[str, Any]] = Body(default=None)) -> Dict[str, Any]:
    publish(PAYMENT_WEBHOOK_RECEIVED, {"gateway": gateway, "keys": sorted((body or {}).keys())})
    return {"received": True, "gateway": gateway}


__all__ = ["router"]
