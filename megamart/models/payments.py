"""Pydantic payloads for mock payments."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import Field

from megamart.models.base import ApiModel, NonEmpty, Trimmed

PaymentMethod = Literal["card", "paypal", "bank_transfer", "upi", "wallet", "cod"]
PaymentStatus = Literal["pending", "processing", "completed", "failed", "cancelled", "refunded"]
Gateway = Literal["razorpay", "stripe", "paypal", "payu", "cashfree"]


class PaymentData(ApiModel):
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None
    upi_id: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None


class PaymentCreate(ApiModel):
    order_id: NonEmpty
    amount: float = Field(ge=0)
    method: PaymentMethod
    currency: Optional[Trimmed] = None
    transaction_id: Optional[NonEmpty] = None
    gateway_transaction_id: Optional[Trimmed] = None
    gateway: Optional[Gateway] = None
    payment_data: Optional[PaymentData] = None
    metadata: Optional[Dict[str, Any]] = None


class PaymentStatusUpdate(ApiModel):
    status: PaymentStatus
    failure_reason: Optional[Trimmed] = None
    refund_amount: Optional[float] = Field(default=None, ge=0)
    refund_reason: Optional[Trimmed] = None


__all__ = [
    "PaymentMethod",
    "PaymentStatus",
    "Gateway",
    "PaymentData",
    "PaymentCreate",
    "PaymentStatusUpdate",
]
