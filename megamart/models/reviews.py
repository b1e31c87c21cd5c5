"""Pydantic payloads for product reviews and moderation."""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional

from pydantic import Field, StringConstraints

from megamart.models.base import ApiModel

ReviewStatus = Literal["pending", "approved", "rejected"]
Rating = Annotated[int, Field(ge=1, le=5)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Comment = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]


class ReviewCreate(ApiModel):
    product: str
    order: Optional[str] = None
    rating: Rating
    title: Title
    comment: Comment
    images: List[str] = Field(default_factory=list)


class ReviewUpdate(ApiModel):
    rating: Optional[Rating] = None
    title: Optional[Title] = None
    comment: Optional[Comment] = None
    images: Optional[List[str]] = None


class AdminResponseIn(ApiModel):
    comment: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ReviewModeration(ApiModel):
    status: ReviewStatus
    admin_response: Optional[AdminResponseIn] = None


__all__ = ["ReviewStatus", "ReviewCreate", "ReviewUpdate", "AdminResponseIn", "ReviewModeration"]
