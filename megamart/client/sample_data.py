"""Starter catalogue for an empty local store."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from megamart.client.local_backend import PRODUCTS, LocalBackend
from megamart.client.local_store import LocalStore

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {
        "name": "Urban Runner Sneakers",
        "description": "Lightweight and stylish sneakers for the modern urban explorer. Built for comfort and speed.",
        "price": 149.99,
        "originalPrice": 199.99,
        "category": "shoes",
        "image": "https://images.unsplash.com/photo-1542291026-7eec264c27ff?w=400&h=400&fit=crop",
        "inStock": True,
        "sizes": ["6", "7", "8", "9", "10", "11", "12"],
        "colors": [{"name": "Black", "hex": "#000000"}, {"name": "White", "hex": "#FFFFFF"}],
    },
    {
        "name": "Premium Leather Boots",
        "description": "Handcrafted from genuine leather, these boots offer timeless style and rugged durability.",
        "price": 249.99,
        "category": "shoes",
        "image": "https://images.unsplash.com/photo-1595460039393-985072b35a44?w=400&h=400&fit=crop",
        "inStock": True,
        "sizes": ["6", "7", "8", "9", "10", "11", "12"],
        "colors": [{"name": "Brown", "hex": "#8B4513"}, {"name": "Black", "hex": "#000000"}],
    },
    {
        "name": "Tech Performance Hoodie",
        "description": "A sleek, modern hoodie made with moisture-wicking fabric. Perfect for workouts or casual wear.",
        "price": 89.99,
        "category": "apparel",
        "image": "https://images.unsplash.com/photo-1556157382-97eda2d62296?w=400&h=400&fit=crop",
        "inStock": True,
        "sizes": ["S", "M", "L", "XL", "XXL"],
        "colors": [{"name": "Gray", "hex": "#808080"}, {"name": "Black", "hex": "#000000"}],
    },
    {
        "name": "Classic Leather Belt",
        "description": "A versatile and durable leather belt that complements any outfit, from casual to formal.",
        "price": 59.99,
        "category": "accessories",
        "image": "https://images.unsplash.com/photo-1553062407-98eeb64c6a62?w=400&h=400&fit=crop",
        "inStock": True,
        "sizes": ["S", "M", "L"],
        "colors": [{"name": "Black", "hex": "#000000"}, {"name": "Brown", "hex": "#8B4513"}],
    },
]


def seed_sample_products(store: LocalStore) -> int:
    """Seed the sample catalogue when the local product list is empty.

    Returns the number of products written.
    """
    if store.read(PRODUCTS):
        return 0
    backend = LocalBackend(store)
    for product in SAMPLE_PRODUCTS:
        backend.save_product(dict(product))
    logger.info("local_sample_products_seeded count=%s", len(SAMPLE_PRODUCTS))
    return len(SAMPLE_PRODUCTS)


__all__ = ["SAMPLE_PRODUCTS", "seed_sample_products"]
