"""Pydantic payloads for product and category writes."""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional

from pydantic import Field, field_validator

from megamart.models.base import ApiModel, NonEmpty, Trimmed

ProductCategory = Literal["shoes", "apparel", "accessories"]
ProductSize = Literal["XS", "S", "M", "L", "XL", "XXL", "6", "7", "8", "9", "10", "11", "12"]
Price = Annotated[float, Field(ge=0)]


def _sizes_as_text(value: object) -> object:
    # Shoe sizes often arrive as JSON numbers
    if isinstance(value, list):
        return [str(v) if isinstance(v, int) and not isinstance(v, bool) else v for v in value]
    return value


class Color(ApiModel):
    name: Optional[str] = None
    hex: Optional[str] = None


class ProductCreate(ApiModel):
    name: NonEmpty
    description: NonEmpty
    price: Price
    original_price: Optional[Price] = None
    category: ProductCategory
    image: NonEmpty
    in_stock: bool = True
    sizes: List[ProductSize] = Field(default_factory=list)
    colors: List[Color] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    rating: float = Field(default=0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)

    @field_validator("sizes", mode="before")
    @classmethod
    def sizes_as_text(cls, v: object) -> object:
        return _sizes_as_text(v)


class ProductUpdate(ApiModel):
    name: Optional[NonEmpty] = None
    description: Optional[NonEmpty] = None
    price: Optional[Price] = None
    original_price: Optional[Price] = None
    category: Optional[ProductCategory] = None
    image: Optional[NonEmpty] = None
    in_stock: Optional[bool] = None
    sizes: Optional[List[ProductSize]] = None
    colors: Optional[List[Color]] = None
    tags: Optional[List[str]] = None

    @field_validator("sizes", mode="before")
    @classmethod
    def sizes_as_text(cls, v: object) -> object:
        return _sizes_as_text(v)


class CategoryCreate(ApiModel):
    name: NonEmpty
    slug: Optional[NonEmpty] = None
    description: Optional[Trimmed] = None
    image: Optional[Trimmed] = None
    icon: Optional[Trimmed] = None
    parent: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    meta_title: Optional[Trimmed] = None
    meta_description: Optional[Trimmed] = None
    featured: bool = False


class CategoryUpdate(ApiModel):
    name: Optional[NonEmpty] = None
    slug: Optional[NonEmpty] = None
    description: Optional[Trimmed] = None
    image: Optional[Trimmed] = None
    icon: Optional[Trimmed] = None
    parent: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
    meta_title: Optional[Trimmed] = None
    meta_description: Optional[Trimmed] = None
    featured: Optional[bool] = None


__all__ = [
    "ProductCategory",
    "ProductSize",
    "Color",
    "ProductCreate",
    "ProductUpdate",
    "CategoryCreate",
    "CategoryUpdate",
]
