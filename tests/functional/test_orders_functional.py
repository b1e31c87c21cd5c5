"""Functional tests for order placement, updates and history."""

from __future__ import annotations

from megamart.logic.events import ORDER_CREATED, ORDER_STATUS_CHANGED, get_buffered_events


def _order_body(user_id, product_id, **overrides):
    body = {
        "user": user_id,
        "items": [
            {
                "product": product_id,
                "name": "Urban Runner Sneakers",
                "price": 149.99,
                "quantity": 2,
                "size": "9",
                "color": "Black",
                "image": "https://img.example/sneakers.jpg",
            }
        ],
        "totalAmount": 299.98,
        "paymentMethod": "cod",
        "shippingAddress": {"firstName": "Ada", "city": "Pune", "zipCode": "411001", "country": "India"},
        "notes": "Leave at the door",
    }
    body.update(overrides)
    return body


def test_place_order_populates_user_and_products_and_records_history(client, create_product, register_user):
    user, _ = register_user()
    product = create_product()

    resp = client.post("/api/orders", json=_order_body(user["_id"], product["_id"]))

    assert resp.status_code == 201
    order = resp.json()
    assert order["status"] == "pending"
    assert order["paymentStatus"] == "pending"
    assert order["user"] == {"_id": user["_id"], "name": user["name"], "email": user["email"]}
    item = order["items"][0]
    assert item["product"] == {"_id": product["_id"], "name": product["name"], "image": product["image"]}
    assert item["quantity"] == 2
    assert order["shippingAddress"]["zipCode"] == "411001"
    assert [h["status"] for h in order["orderHistory"]] == ["pending"]
    assert order["orderHistory"][0]["note"] == "Order placed"

    events = get_buffered_events()
    assert [e["type"] for e in events] == [ORDER_CREATED]
    assert events[0]["payload"]["order_id"] == order["_id"]


def test_place_order_validates_ids_and_quantities(client, create_product):
    product = create_product()

    bad_user = client.post("/api/orders", json=_order_body("nope", product["_id"]))
    assert bad_user.json()["detail"] == "Invalid user ID format"

    bad_item = client.post("/api/orders", json=_order_body(None, "nope"))
    assert bad_item.json()["detail"] == "Invalid product ID in items"

    zero = _order_body(None, product["_id"])
    zero["items"][0]["quantity"] = 0
    assert client.post("/api/orders", json=zero).status_code == 400

    bad_status = client.post("/api/orders", json=_order_body(None, product["_id"], status="lost"))
    assert bad_status.status_code == 400


def test_list_orders_filters_by_user_and_status(client, create_product, register_user):
    alice, _ = register_user()
    bob, _ = register_user()
    product = create_product()
    client.post("/api/orders", json=_order_body(alice["_id"], product["_id"]))
    client.post("/api/orders", json=_order_body(alice["_id"], product["_id"], status="confirmed"))
    client.post("/api/orders", json=_order_body(bob["_id"], product["_id"]))

    mine = client.get("/api/orders", params={"userId": alice["_id"]}).json()
    assert mine["pagination"]["total"] == 2
    assert {o["user"]["_id"] for o in mine["orders"]} == {alice["_id"]}

    confirmed = client.get("/api/orders", params={"status": "confirmed"}).json()
    assert [o["status"] for o in confirmed["orders"]] == ["confirmed"]

    assert client.get("/api/orders", params={"userId": "bad"}).json()["detail"] == "Invalid userId format"


def test_status_change_appends_history_and_publishes_event(client, create_product):
    product = create_product()
    order = client.post("/api/orders", json=_order_body(None, product["_id"])).json()
    get_buffered_events()

    resp = client.put(
        f"/api/orders/{order['_id']}",
        json={"status": "shipped", "trackingNumber": "TRK-1", "note": "Handed to courier"},
    )

    body = resp.json()
    assert resp.status_code == 200
    assert body["trackingNumber"] == "TRK-1"
    assert [h["status"] for h in body["orderHistory"]] == ["pending", "shipped"]
    assert body["orderHistory"][-1]["note"] == "Handed to courier"
    events = get_buffered_events()
    assert events == [
        {"type": ORDER_STATUS_CHANGED, "payload": {"order_id": order["_id"], "from": "pending", "to": "shipped"}}
    ]

    same = client.put(f"/api/orders/{order['_id']}", json={"status": "shipped"}).json()
    assert len(same["orderHistory"]) == 2
    assert get_buffered_events() == []


def test_update_can_replace_items_and_clear_notes(client, create_product):
    first = create_product()
    second = create_product(name="Leather Boots")
    order = client.post("/api/orders", json=_order_body(None, first["_id"])).json()

    resp = client.put(
        f"/api/orders/{order['_id']}",
        json={"items": [{"product": second["_id"], "quantity": 1, "price": 10}], "notes": None},
    )

    body = resp.json()
    assert [i["product"]["_id"] for i in body["items"]] == [second["_id"]]
    assert body["notes"] is None


def test_get_order_handles_placeholder_and_unknown_ids(client):
    resp = client.get("/api/orders/undefined")
    assert resp.status_code == 400
    assert resp.json()["received"] == "undefined"
    assert resp.json()["message"] == "Order ID cannot be undefined or null"

    assert client.get("/api/orders/not-hex").status_code == 404
    assert client.get("/api/orders/0123456789abcdef01234567").json()["detail"] == "Order not found"


def test_delete_order_removes_it(client, create_product):
    product = create_product()
    order = client.post("/api/orders", json=_order_body(None, product["_id"])).json()

    assert client.delete(f"/api/orders/{order['_id']}").json() == {"message": "Order deleted successfully"}
    assert client.get(f"/api/orders/{order['_id']}").status_code == 404
    assert client.delete("/api/orders/bad").json()["detail"] == "Invalid order ID format"
