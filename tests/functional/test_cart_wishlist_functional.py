"""Functional tests for the shopping cart and wishlist endpoints."""

from __future__ import annotations


def test_cart_requires_a_bearer_token(client):
    assert client.get("/api/cart").status_code == 401
    assert client.get("/api/cart", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_cart_is_created_on_first_read(client, register_user, auth):
    user, token = register_user()

    cart = client.get("/api/cart", headers=auth(token)).json()

    assert cart["user"] == user["_id"]
    assert cart["items"] == []
    assert cart["totalItems"] == 0
    assert cart["subtotal"] == 0


def test_adding_the_same_variant_merges_quantities(client, register_user, create_product, auth):
    _, token = register_user()
    product = create_product(price=10.25)
    headers = auth(token)

    client.post("/api/cart/items", json={"productId": product["_id"], "quantity": 1, "size": "9"}, headers=headers)
    client.post("/api/cart/items", json={"productId": product["_id"], "quantity": 2, "size": "9"}, headers=headers)
    cart = client.post(
        "/api/cart/items", json={"productId": product["_id"], "size": "10"}, headers=headers
    ).json()

    assert sorted(i["quantity"] for i in cart["items"]) == [1, 3]
    assert cart["totalItems"] == 4
    assert cart["subtotal"] == 41.0
    assert cart["items"][0]["product"]["name"] == product["name"]
    assert cart["items"][0]["product"]["inStock"] is True


def test_add_requires_product_id(client, register_user, auth):
    _, token = register_user()

    resp = client.post("/api/cart/items", json={"quantity": 1}, headers=auth(token))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Product ID is required"


def test_add_rejects_malformed_and_unknown_products(client, register_user, auth):
    _, token = register_user()
    headers = auth(token)

    malformed = client.post("/api/cart/items", json={"productId": "sneakers"}, headers=headers)
    assert malformed.status_code == 400
    assert malformed.json()["detail"] == "Invalid product ID format"

    unknown = client.post("/api/cart/items", json={"productId": "0123456789abcdef01234567"}, headers=headers)
    assert unknown.status_code == 404
    assert unknown.json()["detail"] == "Product not found"

    assert client.get("/api/cart", headers=headers).json()["items"] == []


def test_update_quantity_validates_item_and_quantity(client, register_user, create_product, auth):
    _, token = register_user()
    headers = auth(token)
    product = create_product(price=5)

    missing_cart = client.put("/api/cart/items/0123456789abcdef01234567", json={"quantity": 2}, headers=headers)
    assert missing_cart.json()["detail"] == "Cart not found"

    cart = client.post("/api/cart/items", json={"productId": product["_id"]}, headers=headers).json()
    item_id = cart["items"][0]["_id"]

    assert client.put(f"/api/cart/items/{item_id}", json={"quantity": 0}, headers=headers).json()["detail"] == (
        "Valid quantity is required"
    )
    assert client.put("/api/cart/items/bad", json={"quantity": 1}, headers=headers).status_code == 400
    unknown = client.put("/api/cart/items/0123456789abcdef01234567", json={"quantity": 2}, headers=headers)
    assert unknown.status_code == 404
    assert unknown.json()["detail"] == "Item not found in cart"

    updated = client.put(f"/api/cart/items/{item_id}", json={"quantity": 4}, headers=headers).json()
    assert updated["totalItems"] == 4
    assert updated["subtotal"] == 20


def test_remove_item_and_clear_cart(client, register_user, create_product, auth):
    _, token = register_user()
    headers = auth(token)

    assert client.delete("/api/cart", headers=headers).json()["detail"] == "Cart not found"

    first = create_product()
    second = create_product(name="Second")
    client.post("/api/cart/items", json={"productId": first["_id"]}, headers=headers)
    cart = client.post("/api/cart/items", json={"productId": second["_id"]}, headers=headers).json()

    item_id = next(i["_id"] for i in cart["items"] if i["product"]["_id"] == first["_id"])
    after_remove = client.delete(f"/api/cart/items/{item_id}", headers=headers).json()
    assert [i["product"]["_id"] for i in after_remove["items"]] == [second["_id"]]

    cleared = client.delete("/api/cart", headers=headers).json()
    assert cleared["items"] == []


def test_carts_are_isolated_per_user(client, register_user, create_product, auth):
    _, alice_token = register_user()
    _, bob_token = register_user()
    product = create_product()

    client.post("/api/cart/items", json={"productId": product["_id"]}, headers=auth(alice_token))

    assert client.get("/api/cart", headers=auth(bob_token)).json()["items"] == []


def test_wishlist_add_list_remove_and_clear(client, register_user, create_product):
    user, _ = register_user()
    product = create_product()
    other = create_product(name="Other")

    assert client.get(f"/api/wishlist/{user['_id']}").json() == {"items": []}

    added = client.post("/api/wishlist", json={"userId": user["_id"], "productId": product["_id"]})
    assert added.status_code == 201
    client.post("/api/wishlist", json={"userId": user["_id"], "productId": other["_id"]})

    wishlist = client.get(f"/api/wishlist/{user['_id']}").json()
    assert {i["product"]["_id"] for i in wishlist["items"]} == {product["_id"], other["_id"]}
    assert set(wishlist["items"][0]["product"]) >= {"_id", "name", "image", "price", "category"}

    duplicate = client.post("/api/wishlist", json={"userId": user["_id"], "productId": product["_id"]})
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "Product already in wishlist"

    after = client.delete(f"/api/wishlist/{user['_id']}/{product['_id']}").json()
    assert [i["product"]["_id"] for i in after["items"]] == [other["_id"]]

    assert client.delete(f"/api/wishlist/{user['_id']}").json() == {"message": "Wishlist cleared successfully"}
    assert client.delete(f"/api/wishlist/{user['_id']}").status_code == 404


def test_wishlist_validates_ids(client):
    assert client.get("/api/wishlist/bad").json()["detail"] == "Invalid user ID format"
    resp = client.post("/api/wishlist", json={"userId": "0123456789abcdef01234567", "productId": "bad"})
    assert resp.json()["detail"] == "Invalid product ID format"
    missing = client.delete("/api/wishlist/0123456789abcdef01234567/0123456789abcdef01234568")
    assert missing.json()["detail"] == "Wishlist not found"
