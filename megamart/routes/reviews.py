"""Product review endpoints.

Anyone may read approved reviews. Writing requires a bearer token: authors
edit their own reviews, authors or admins delete them, and admins moderate.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from megamart.guards.auth import get_current_user, require_admin
from megamart.guards.ids import require_object_id
from megamart.logic.events import PRODUCT_RATING_RECOMPUTED, REVIEW_SUBMITTED, publish
from megamart.logic.problem_factory import bad_request, forbidden, not_found
from megamart.logic.query_helpers import DuplicateError, InvalidQueryError, pagination
from megamart.logic.repository_products import get_product, product_exists
from megamart.logic.repository_reviews import (
    create_review,
    delete_review,
    get_review,
    list_reviews,
    mark_helpful,
    moderate_review,
    product_reviews,
    update_review,
)
from megamart.models.reviews import ReviewCreate, ReviewModeration, ReviewStatus, ReviewUpdate

router = APIRouter(prefix="/reviews", tags=["Reviews"])

_INVALID_ID = "Invalid review ID format"


def _rating_changed(product_id: str) -> None:
    product = get_product(product_id)
    if product is not None:
        publish(
            PRODUCT_RATING_RECOMPUTED,
            {"product_id": product_id, "rating": product["rating"], "review_count": product["reviewCount"]},
        )


@router.get("", summary="List reviews")
def get_reviews(
    product: Optional[str] = None,
    user: Optional[str] = None,
    status: ReviewStatus = "approved",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: str = "-createdAt",
) -> Dict[str, Any]:
    try:
        reviews, total = list_reviews(page, limit, status=status, product_id=product, user_id=user, sort=sort)
    except InvalidQueryError as exc:
        raise bad_request(str(exc))
    return {"reviews": reviews, "pagination": pagination(page, limit, total)}


@router.get("/product/{product_id}", summary="Approved reviews and rating stats for a product")
def get_product_reviews(
    product_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> Dict[str, Any]:
    require_object_id(product_id, "Invalid product ID format")
    reviews, total, stats = product_reviews(product_id, page, limit)
    return {"reviews": reviews, "stats": stats, "pagination": pagination(page, limit, total)}


@router.post("", status_code=201, summary="Review a product")
def post_review(payload: ReviewCreate, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    require_object_id(payload.product, "Invalid product ID format")
    if payload.order:
        require_object_id(payload.order, "Invalid order ID format")
    if not product_exists(payload.product):
        raise not_found("Product not found")
    try:
        review = create_review(user["_id"], payload.columns())
    except DuplicateError as exc:
        raise bad_request(str(exc))
    publish(REVIEW_SUBMITTED, {"review_id": review["_id"], "product_id": payload.product})
    _rating_changed(payload.product)
    return review


@router.put("/{review_id}", summary="Edit your review")
def put_review(
    review_id: str,
    payload: ReviewUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    require_object_id(review_id, _INVALID_ID)
    existing = get_review(review_id)
    if existing is None:
        raise not_found("Review not found")
    if existing["user"] != user["_id"]:
        raise forbidden("Not authorized to update this review")
    review = update_review(review_id, payload.columns(partial=True))
    if review is None:
        raise not_found("Review not found")
    _rating_changed(existing["product"])
    return review


@router.delete("/{review_id}", summary="Delete a review")
def remove_review(review_id: str, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, str]:
    require_object_id(review_id, _INVALID_ID)
    existing = get_review(review_id)
    if existing is None:
        raise not_found("Review not found")
    if existing["user"] != user["_id"] and user.get("role") != "admin":
        raise forbidden("Not authorized to delete this review")
    if not delete_review(review_id):
        raise not_found("Review not found")
    _rating_changed(existing["product"])
    return {"message": "Review deleted successfully"}


@router.put("/{review_id}/helpful", summary="Mark a review as helpful")
def put_helpful(review_id: str, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    require_object_id(review_id, _INVALID_ID)
    review = mark_helpful(review_id)
    if review is None:
        raise not_found("Review not found")
    return review


@router.put("/{review_id}/status", summary="Moderate a review")
def put_review_status(
    review_id: str,
    payload: ReviewModeration,
    admin: Dict[str, Any] = Depends(require_admin),
) -> Dict[str, Any]:
    require_object_id(review_id, _INVALID_ID)
    review = moderate_review(
        review_id,
        payload.status,
        responded_by=admin["_id"],
        response_comment=payload.admin_response.comment if payload.admin_response else None,
    )
    if review is None:
        raise not_found("Review not found")
    _rating_changed(review["product"])
    return review


__all__ = ["router"]
