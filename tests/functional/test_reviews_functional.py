"""Functional tests for reviews, moderation and product rating upkeep."""

from __future__ import annotations

from megamart.logic.events import PRODUCT_RATING_RECOMPUTED, REVIEW_SUBMITTED, get_buffered_events


def _review(product_id, **overrides):
    body = {"product": product_id, "rating": 5, "title": "Great fit", "comment": "Comfortable all day."}
    body.update(overrides)
    return body


def _post(client, auth, token, body):
    resp = client.post("/api/reviews", json=body, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_new_reviews_start_pending_and_do_not_count_towards_rating(client, register_user, create_product, auth):
    user, token = register_user()
    product = create_product()

    review = _post(client, auth, token, _review(product["_id"]))

    assert review["status"] == "pending"
    assert review["user"] == {"_id": user["_id"], "name": user["name"]}
    assert review["product"] == product["_id"]
    assert client.get(f"/api/products/{product['_id']}").json()["rating"] == 0
    assert client.get("/api/reviews").json()["reviews"] == []
    assert [e["type"] for e in get_buffered_events()] == [REVIEW_SUBMITTED, PRODUCT_RATING_RECOMPUTED]


def test_one_review_per_user_per_product(client, register_user, create_product, auth):
    _, token = register_user()
    product = create_product()
    _post(client, auth, token, _review(product["_id"]))

    resp = client.post("/api/reviews", json=_review(product["_id"], rating=1), headers=auth(token))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "You have already reviewed this product"


def test_review_requires_existing_product_and_valid_rating(client, register_user, auth):
    _, token = register_user()

    missing = client.post("/api/reviews", json=_review("0123456789abcdef01234567"), headers=auth(token))
    assert missing.status_code == 404
    assert client.post("/api/reviews", json=_review("bad"), headers=auth(token)).status_code == 400
    assert client.post("/api/reviews", json=_review("0123456789abcdef01234567", rating=6), headers=auth(token)).status_code == 400
    assert client.post("/api/reviews", json=_review("0123456789abcdef01234567")).status_code == 401


def test_approval_recomputes_product_rating_and_stats(client, register_user, create_product, auth):
    _, admin_token = register_user(role="admin")
    _, first = register_user()
    _, second = register_user()
    product = create_product()
    r1 = _post(client, auth, first, _review(product["_id"], rating=5))
    r2 = _post(client, auth, second, _review(product["_id"], rating=4))

    for review in (r1, r2):
        resp = client.put(
            f"/api/reviews/{review['_id']}/status",
            json={"status": "approved", "adminResponse": {"comment": "Thanks!"}},
            headers=auth(admin_token),
        )
        assert resp.status_code == 200

    assert resp.json()["adminResponse"]["comment"] == "Thanks!"
    product_now = client.get(f"/api/products/{product['_id']}").json()
    assert product_now["rating"] == 4.5
    assert product_now["reviewCount"] == 2

    stats = client.get(f"/api/reviews/product/{product['_id']}").json()
    assert stats["stats"] == {"averageRating": 4.5, "totalReviews": 2}
    assert len(stats["reviews"]) == 2

    listed = client.get("/api/reviews", params={"product": product["_id"], "sort": "rating"}).json()
    assert [r["rating"] for r in listed["reviews"]] == [4, 5]
    assert listed["reviews"][0]["product"]["name"] == product["name"]

    client.put(f"/api/reviews/{r1['_id']}/status", json={"status": "rejected"}, headers=auth(admin_token))
    assert client.get(f"/api/products/{product['_id']}").json()["rating"] == 4.0


def test_only_admins_moderate(client, register_user, create_product, auth):
    _, token = register_user()
    review = _post(client, auth, token, _review(create_product()["_id"]))

    resp = client.put(f"/api/reviews/{review['_id']}/status", json={"status": "approved"}, headers=auth(token))

    assert resp.status_code == 403


def test_only_the_author_may_edit(client, register_user, create_product, auth):
    _, author = register_user()
    _, stranger = register_user()
    review = _post(client, auth, author, _review(create_product()["_id"]))

    denied = client.put(f"/api/reviews/{review['_id']}", json={"rating": 1}, headers=auth(stranger))
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Not authorized to update this review"

    edited = client.put(f"/api/reviews/{review['_id']}", json={"title": "Still great"}, headers=auth(author))
    assert edited.json()["title"] == "Still great"
    assert edited.json()["rating"] == 5


def test_author_or_admin_may_delete(client, register_user, create_product, auth):
    _, author = register_user()
    _, stranger = register_user()
    _, admin = register_user(role="admin")
    product = create_product()
    review = _post(client, auth, author, _review(product["_id"]))

    assert client.delete(f"/api/reviews/{review['_id']}", headers=auth(stranger)).status_code == 403
    assert client.delete(f"/api/reviews/{review['_id']}", headers=auth(admin)).json() == {
        "message": "Review deleted successfully"
    }
    assert client.delete(f"/api/reviews/{review['_id']}", headers=auth(author)).status_code == 404


def test_mark_helpful_increments_counter(client, register_user, create_product, auth):
    _, token = register_user()
    review = _post(client, auth, token, _review(create_product()["_id"]))

    client.put(f"/api/reviews/{review['_id']}/helpful", headers=auth(token))
    resp = client.put(f"/api/reviews/{review['_id']}/helpful", headers=auth(token))

    assert resp.json()["helpful"] == 2


def test_review_listing_validates_sort_and_ids(client):
    assert client.get("/api/reviews", params={"sort": "secret"}).status_code == 400
    assert client.get("/api/reviews/product/bad").json()["detail"] == "Invalid product ID format"
