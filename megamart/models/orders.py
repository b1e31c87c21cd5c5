"""Pydantic payloads for orders, carts and wishlists."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from megamart.models.base import ApiModel, NonEmpty

OrderStatus = Literal["pending", "confirmed", "paid", "processing", "shipped", "delivered", "cancelled"]
OrderPaymentMethod = Literal["card", "paypal", "bank_transfer", "cash_on_delivery", "cod", "upi"]
OrderPaymentStatus = Literal["pending", "paid", "failed", "refunded"]


class AddressSnapshot(ApiModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class OrderItemIn(ApiModel):
    product: NonEmpty
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    quantity: int = Field(ge=1)
    size: Optional[str] = None
    color: Optional[str] = None
    image: Optional[str] = None


class OrderCreate(ApiModel):
    user: Optional[str] = None
    items: List[OrderItemIn] = Field(default_factory=list)
    total_amount: float = Field(default=0, ge=0)
    status: OrderStatus = "pending"
    payment_method: OrderPaymentMethod = "cod"
    payment_status: OrderPaymentStatus = "pending"
    shipping_address: Optional[AddressSnapshot] = None
    billing_address: Optional[AddressSnapshot] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


class OrderUpdate(ApiModel):
    items: Optional[List[OrderItemIn]] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    status: Optional[OrderStatus] = None
    payment_method: Optional[OrderPaymentMethod] = None
    payment_status: Optional[OrderPaymentStatus] = None
    shipping_address: Optional[AddressSnapshot] = None
    billing_address: Optional[AddressSnapshot] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    # Recorded on the order history entry when `status` changes
    note: Optional[str] = None


class CartItemAdd(ApiModel):
    product_id: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    size: Optional[str] = None
    color: Optional[str] = None


class CartItemUpdate(ApiModel):
    quantity: Optional[int] = None


class WishlistAdd(ApiModel):
    user_id: str
    product_id: str


__all__ = [
    "OrderStatus",
    "OrderPaymentMethod",
    "OrderPaymentStatus",
    "AddressSnapshot",
    "OrderItemIn",
    "OrderCreate",
    "OrderUpdate",
    "CartItemAdd",
    "CartItemUpdate",
    "WishlistAdd",
]
