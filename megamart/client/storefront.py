"""Storefront data client with local-storage fallback.

`StorefrontClient` talks to the MegaMart API over httpx. When the API cannot
be reached (transport failure or a 5xx answer) the client switches into
fallback mode for the rest of its lifetime and serves every operation from a
`LocalBackend` over a JSON-file `LocalStore`. The two copies are never
reconciled.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from megamart.client.local_backend import LocalBackend
from megamart.client.local_store import LocalStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiError(Exception):
    """The API answered with a 4xx response."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ApiUnavailable(Exception):
    """The API could not serve the request; the local store takes over."""


def _normalise(record: Any) -> Any:
    if isinstance(record, dict) and "_id" in record and not record.get("id"):
        return {**record, "id": record["_id"]}
    return record


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("detail", "error", "message", "title"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return f"HTTP error! status: {response.status_code}"


class StorefrontClient:
    def __init__(
        self,
        base_url: str,
        store: LocalStore,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_http = http is None
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.local = LocalBackend(store)
        self.fallback_mode = False

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "StorefrontClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _switch_to_fallback(self, reason: str) -> None:
        if not self.fallback_mode:
            logger.warning("client_fallback_enabled reason=%s", reason)
        self.fallback_mode = True

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if self.fallback_mode:
            raise ApiUnavailable("Using local storage fallback")
        try:
            response = self.http.request(method, path, json=json, params=params)
        except httpx.TransportError as exc:
            self._switch_to_fallback(type(exc).__name__)
            raise ApiUnavailable(str(exc)) from exc
        if response.status_code >= 500:
            self._switch_to_fallback(f"status={response.status_code}")
            raise ApiUnavailable(_error_message(response))
        if response.status_code >= 400:
            raise ApiError(response.status_code, _error_message(response))
        return response.json()

    def _with_fallback(self, operation: str, remote: Callable[[], T], local: Callable[[], T]) -> T:
        try:
            return remote()
        except ApiUnavailable:
            logger.info("client_local_fallback operation=%s", operation)
            return local()

    def _get_or_none(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            return _normalise(self._request("GET", path))
        except ApiError as exc:
            if exc.status_code == 404:
                return None
            raise

    # Products
    def get_products(self) -> List[Dict[str, Any]]:
        def remote() -> List[Dict[str, Any]]:
            data = self._request("GET", "/products", params={"limit": 100})
            return [_normalise(p) for p in data.get("products", [])]

        return self._with_fallback("get_products", remote, self.local.get_products)

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        return self._with_fallback(
            "get_product",
            lambda: self._get_or_none(f"/products/{product_id}"),
            lambda: self.local.get_product(product_id),
        )

    def save_product(self, data: Dict[str, Any]) -> Dict[str, Any]:
        def remote() -> Dict[str, Any]:
            if data.get("id"):
                return _normalise(self._request("PUT", f"/products/{data['id']}", json=data))
            return _normalise(self._request("POST", "/products", json=data))

        return self._with_fallback("save_product", remote, lambda: self.local.save_product(data))

    def delete_product(self, product_id: str) -> bool:
        def remote() -> bool:
            self._request("DELETE", f"/products/{product_id}")
            return True

        return self._with_fallback("delete_product", remote, lambda: self.local.delete_product(product_id))

    def get_categories(self) -> List[Dict[str, Any]]:
        return self._with_fallback(
            "get_categories",
            lambda: [_normalise(c) for c in self._request("GET", "/categories")],
            self.local.get_categories,
        )

    # Orders
    def get_orders(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        def remote() -> List[Dict[str, Any]]:
            params = {"userId": user_id} if user_id else None
            data = self._request("GET", "/orders", params=params)
            return [_normalise(o) for o in data.get("orders", [])]

        return self._with_fallback("get_orders", remote, lambda: self.local.get_orders(user_id))

    def save_order(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._with_fallback(
            "save_order",
            lambda: _normalise(self._request("POST", "/orders", json=data)),
            lambda: self.local.save_order(data),
        )

    def update_order(self, order_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._with_fallback(
            "update_order",
            lambda: _normalise(self._request("PUT", f"/orders/{order_id}", json=changes)),
            lambda: self.local.update_order(order_id, changes),
        )

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        return self._with_fallback(
            "get_order",
            lambda: _normalise(self._request("GET", f"/orders/{order_id}")),
            lambda: self.local.get_order(order_id),
        )

    # Users
    def get_users(self) -> List[Dict[str, Any]]:
        def remote() -> List[Dict[str, Any]]:
            data = self._request("GET", "/users", params={"limit": 100})
            return [_normalise(u) for u in data.get("users", [])]

        return self._with_fallback("get_users", remote, self.local.get_users)

    def save_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._with_fallback(
            "save_user",
            lambda: _normalise(self._request("POST", "/users", json=data)),
            lambda: self.local.save_user(data),
        )

    def update_user(self, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._with_fallback(
            "update_user",
            lambda: _normalise(self._request("PUT", f"/users/{user_id}", json=changes)),
            lambda: self.local.update_user(user_id, changes),
        )

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._with_fallback(
            "get_user",
            lambda: self._get_or_none(f"/users/{user_id}"),
            lambda: self.local.get_user(user_id),
        )

    def login(self, identifier: str, password: str) -> Dict[str, Any]:
        def remote() -> Dict[str, Any]:
            try:
                data = self._request(
                    "POST", "/users/login", json={"identifier": identifier, "password": password}
                )
            except ApiError as exc:
                if exc.status_code == 401:
                    return {"success": False, "message": exc.message}
                raise
            return {
                "success": True,
                "user": _normalise(data.get("user")),
                "message": data.get("message"),
                "token": data.get("token"),
            }

        return self._with_fallback("login", remote, lambda: self.local.login(identifier, password))

    # Wishlist
    def get_wishlist(self, user_id: str) -> List[Dict[str, Any]]:
        def remote() -> List[Dict[str, Any]]:
            data = self._request("GET", f"/wishlist/{user_id}")
            return [_normalise(i) for i in data.get("items", [])]

        return self._with_fallback("get_wishlist", remote, lambda: self.local.get_wishlist(user_id))

    def add_to_wishlist(self, user_id: str, product_id: str) -> Dict[str, Any]:
        return self._with_fallback(
            "add_to_wishlist",
            lambda: self._request("POST", "/wishlist", json={"userId": user_id, "productId": product_id}),
            lambda: self.local.add_to_wishlist(user_id, product_id),
        )

    def remove_from_wishlist(self, user_id: str, product_id: str) -> Dict[str, Any]:
        return self._with_fallback(
            "remove_from_wishlist",
            lambda: self._request("DELETE", f"/wishlist/{user_id}/{product_id}"),
            lambda: self.local.remove_from_wishlist(user_id, product_id),
        )


__all__ = ["StorefrontClient", "ApiError", "ApiUnavailable"]
