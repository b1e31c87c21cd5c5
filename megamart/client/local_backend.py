"""Storefront operations served from the local JSON store.

Mirrors the API operations the client exposes so callers keep working while
the server or its database is down. Records are matched on `id` and, where
they came from the API originally, on `_id` as well.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from megamart.client.local_store import LocalStore
from megamart.logic.auth import hash_password, verify_password
from megamart.logic.identifiers import new_object_id, utc_now_iso

logger = logging.getLogger(__name__)

PRODUCTS = "products"
CATEGORIES = "categories"
ORDERS = "orders"
USERS = "users"
WISHLIST = "wishlist"

_ORDER_ITEM_KEYS = ("name", "price", "quantity", "size", "color", "image")
_SHIPPING_KEYS = ("address", "city", "state", "pincode", "country")


class NotFoundError(LookupError):
    """Raised when a local update targets a record that does not exist."""


def _matches(record: Dict[str, Any], record_id: str) -> bool:
    return record.get("id") == record_id or record.get("_id") == record_id


def _public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password"}


class LocalBackend:
    def __init__(self, store: LocalStore) -> None:
        self.store = store

    # Products
    def get_products(self) -> List[Dict[str, Any]]:
        return self.store.read(PRODUCTS)

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        return next((p for p in self.store.read(PRODUCTS) if _matches(p, product_id)), None)

    def save_product(self, data: Dict[str, Any]) -> Dict[str, Any]:
        products = self.store.read(PRODUCTS)
        product_id = data.get("id")
        if product_id:
            for index, existing in enumerate(products):
                if _matches(existing, product_id):
                    products[index] = dict(data)
                    break
            product = dict(data)
        else:
            product = {**data, "id": new_object_id()}
            products.append(product)
        self.store.write(PRODUCTS, products)
        return product

    def delete_product(self, product_id: str) -> bool:
        products = self.store.read(PRODUCTS)
        self.store.write(PRODUCTS, [p for p in products if not _matches(p, product_id)])
        return True

    def get_categories(self) -> List[Dict[str, Any]]:
        return self.store.read(CATEGORIES)

    # Orders
    def get_orders(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        orders = self.store.read(ORDERS)
        if user_id is None:
            return orders
        return [o for o in orders if o.get("userId") == user_id or o.get("user") == user_id]

    def save_order(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payment_method = data.get("paymentMethod") or "cod"
        items = []
        for item in data.get("items") or []:
            line = dict(item)
            line["product"] = item.get("product") or item.get("_id") or item.get("id")
            for key in _ORDER_ITEM_KEYS:
                line.setdefault(key, None)
            items.append(line)
        shipping = data.get("shippingAddress")
        customer = data.get("customerInfo")
        order = {
            **data,
            "id": new_object_id(),
            "createdAt": utc_now_iso(),
            "status": data.get("status") or "pending",
            "paymentMethod": payment_method,
            "paymentStatus": "pending" if payment_method == "cod" else "paid",
            "items": items,
            "customerInfo": (
                {k: customer.get(k) for k in ("name", "email", "phone")} if customer else None
            ),
            "shippingAddress": (
                {k: shipping.get(k) for k in _SHIPPING_KEYS} if shipping else None
            ),
            "notes": data.get("notes") or None,
        }
        orders = self.store.read(ORDERS)
        orders.append(order)
        self.store.write(ORDERS, orders)
        logger.info("local_order_saved order_id=%s", order["id"])
        return order

    def update_order(self, order_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        orders = self.store.read(ORDERS)
        for index, existing in enumerate(orders):
            if _matches(existing, order_id):
                orders[index] = {**existing, **changes}
                self.store.write(ORDERS, orders)
                return orders[index]
        raise NotFoundError("Order not found")

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        return next((o for o in self.store.read(ORDERS) if _matches(o, order_id)), None)

    # Users
    def get_users(self) -> List[Dict[str, Any]]:
        return [_public_user(u) for u in self.store.read(USERS)]

    def save_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        user_id = new_object_id()
        user = {
            **data,
            "id": user_id,
            "_id": user_id,
            "role": data.get("role") or "user",
            "createdAt": utc_now_iso(),
        }
        if user.get("password"):
            user["password"] = hash_password(user["password"])
        users = self.store.read(USERS)
        users.append(user)
        self.store.write(USERS, users)
        return _public_user(user)

    def update_user(self, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        changes = dict(changes)
        if changes.get("password"):
            changes["password"] = hash_password(changes["password"])
        users = self.store.read(USERS)
        for index, existing in enumerate(users):
            if _matches(existing, user_id):
                users[index] = {**existing, **changes}
                self.store.write(USERS, users)
                return _public_user(users[index])
        raise NotFoundError("User not found")

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        user = next((u for u in self.store.read(USERS) if _matches(u, user_id)), None)
        return _public_user(user) if user else None

    def login(self, identifier: str, password: str) -> Dict[str, Any]:
        for user in self.store.read(USERS):
            if identifier not in (user.get("email"), user.get("username")):
                continue
            if verify_password(password, user.get("password") or ""):
                return {"success": True, "user": _public_user(user), "message": "Login successful"}
        return {"success": False, "message": "Invalid credentials"}

    # Wishlist
    def get_wishlist(self, user_id: str) -> List[Dict[str, Any]]:
        return [item for item in self.store.read(WISHLIST) if item.get("userId") == user_id]

    def add_to_wishlist(self, user_id: str, product_id: str) -> Dict[str, Any]:
        wishlist = self.store.read(WISHLIST)
        exists = any(i.get("userId") == user_id and i.get("productId") == product_id for i in wishlist)
        if not exists:
            wishlist.append(
                {"userId": user_id, "productId": product_id, "id": new_object_id(), "addedAt": utc_now_iso()}
            )
            self.store.write(WISHLIST, wishlist)
        return {"success": True}

    def remove_from_wishlist(self, user_id: str, product_id: str) -> Dict[str, Any]:
        wishlist = self.store.read(WISHLIST)
        kept = [i for i in wishlist if not (i.get("userId") == user_id and i.get("productId") == product_id)]
        self.store.write(WISHLIST, kept)
        return {"success": True}


__all__ = ["LocalBackend", "NotFoundError"]
