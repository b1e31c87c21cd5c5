"""APIRouter registration for the MegaMart API."""

from __future__ import annotations

from fastapi import APIRouter

from megamart.routes.addresses import router as addresses_router
from megamart.routes.cart import router as cart_router
from megamart.routes.categories import router as categories_router
from megamart.routes.health import router as health_router
from megamart.routes.orders import router as orders_router
from megamart.routes.payments import router as payments_router
from megamart.routes.products import router as products_router
from megamart.routes.reviews import router as reviews_router
from megamart.routes.users import router as users_router
from megamart.routes.wishlist import router as wishlist_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(products_router)
api_router.include_router(categories_router)
api_router.include_router(users_router)
api_router.include_router(orders_router)
api_router.include_router(cart_router)
api_router.include_router(wishlist_router)
api_router.include_router(addresses_router)
api_router.include_router(reviews_router)
api_router.include_router(payments_router)

__all__ = ["api_router"]
