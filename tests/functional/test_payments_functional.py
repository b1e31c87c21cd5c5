"""Functional tests for mock payments and their effect on orders."""

from __future__ import annotations

from megamart.logic.events import PAYMENT_CREATED, PAYMENT_WEBHOOK_RECEIVED, get_buffered_events


def _place_order(client, user_id, product_id, total=100.0):
    resp = client.post(
        "/api/orders",
        json={"user": user_id, "items": [{"product": product_id, "quantity": 1, "price": total}], "totalAmount": total},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _pay(client, auth, token, order_id, **overrides):
    body = {"orderId": order_id, "amount": 100.0, "method": "card", "currency": "inr"}
    body.update(overrides)
    return client.post("/api/payments", json=body, headers=auth(token))


def test_card_payment_starts_processing_with_generated_transaction_id(client, register_user, create_product, auth):
    user, token = register_user()
    order = _place_order(client, user["_id"], create_product()["_id"])

    resp = _pay(client, auth, token, order["_id"])

    assert resp.status_code == 201
    payment = resp.json()
    assert payment["status"] == "processing"
    assert payment["currency"] == "INR"
    assert payment["formattedAmount"] == "INR 100.00"
    assert payment["transactionId"].startswith("TXN_")
    assert payment["order"]["_id"] == order["_id"]
    assert payment["order"]["totalAmount"] == 100.0
    assert payment["userAgent"]
    assert [e["type"] for e in get_buffered_events() if e["type"] == PAYMENT_CREATED] == [PAYMENT_CREATED]


def test_cash_on_delivery_starts_pending(client, register_user, create_product, auth):
    user, token = register_user()
    order = _place_order(client, user["_id"], create_product()["_id"])

    payment = _pay(client, auth, token, order["_id"], method="cod").json()

    assert payment["status"] == "pending"


def test_payment_requires_an_order_owned_by_the_caller(client, register_user, create_product, auth):
    owner, _ = register_user()
    _, intruder = register_user()
    order = _place_order(client, owner["_id"], create_product()["_id"])

    assert _pay(client, auth, intruder, order["_id"]).json()["detail"] == "Order not found"
    assert _pay(client, auth, intruder, "bad").status_code == 400
    assert _pay(client, auth, intruder, order["_id"], method="cheque").status_code == 400


def test_duplicate_transaction_id_is_rejected(client, register_user, create_product, auth):
    user, token = register_user()
    order = _place_order(client, user["_id"], create_product()["_id"])
    _pay(client, auth, token, order["_id"], transactionId="TXN-FIXED")

    resp = _pay(client, auth, token, order["_id"], transactionId="TXN-FIXED")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Transaction ID already exists"


def test_payments_are_listed_and_read_per_user(client, register_user, create_product, auth):
    user, token = register_user()
    _, other = register_user()
    order = _place_order(client, user["_id"], create_product()["_id"])
    card = _pay(client, auth, token, order["_id"]).json()
    _pay(client, auth, token, order["_id"], method="upi")

    listing = client.get("/api/payments", params={"method": "card"}, headers=auth(token)).json()
    assert [p["_id"] for p in listing["payments"]] == [card["_id"]]
    assert listing["pagination"]["total"] == 1

    assert client.get(f"/api/payments/{card['_id']}", headers=auth(token)).json()["_id"] == card["_id"]
    assert client.get(f"/api/payments/{card['_id']}", headers=auth(other)).status_code == 404
    assert client.get("/api/payments", headers=auth(other)).json()["payments"] == []


def test_completing_a_payment_marks_the_order_paid(client, register_user, create_product, auth):
    user, token = register_user()
    _, admin = register_user(role="admin")
    order = _place_order(client, user["_id"], create_product()["_id"])
    payment = _pay(client, auth, token, order["_id"]).json()

    resp = client.put(f"/api/payments/{payment['_id']}/status", json={"status": "completed"}, headers=auth(admin))

    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    updated = client.get(f"/api/orders/{order['_id']}").json()
    assert updated["status"] == "paid"
    assert updated["paymentStatus"] == "paid"
    assert updated["orderHistory"][-1]["status"] == "paid"
    assert updated["orderHistory"][-1]["note"] == f"Payment {payment['transactionId']} completed"


def test_failed_and_refunded_payments(client, register_user, create_product, auth):
    user, token = register_user()
    _, admin = register_user(role="admin")
    order = _place_order(client, user["_id"], create_product()["_id"])
    failing = _pay(client, auth, token, order["_id"]).json()
    refunded = _pay(client, auth, token, order["_id"], amount=40.0).json()

    failed = client.put(
        f"/api/payments/{failing['_id']}/status",
        json={"status": "failed", "failureReason": "Card declined"},
        headers=auth(admin),
    ).json()
    assert failed["failureReason"] == "Card declined"
    assert client.get(f"/api/orders/{order['_id']}").json()["paymentStatus"] == "failed"

    refund = client.put(
        f"/api/payments/{refunded['_id']}/status",
        json={"status": "refunded", "refundReason": "Changed mind"},
        headers=auth(admin),
    ).json()
    assert refund["refundAmount"] == 40.0
    assert refund["refundReason"] == "Changed mind"
    assert refund["refundedAt"]

    stats = client.get("/api/payments/admin/stats", headers=auth(admin)).json()
    assert stats == {
        "totalPayments": 2,
        "totalAmount": 140.0,
        "successfulPayments": 0,
        "successfulAmount": 0.0,
        "failedPayments": 1,
        "refundedAmount": 40.0,
    }


def test_status_changes_and_stats_require_admin(client, register_user, create_product, auth):
    user, token = register_user()
    order = _place_order(client, user["_id"], create_product()["_id"])
    payment = _pay(client, auth, token, order["_id"]).json()

    denied = client.put(f"/api/payments/{payment['_id']}/status", json={"status": "completed"}, headers=auth(token))
    assert denied.status_code == 403
    assert client.get("/api/payments/admin/stats", headers=auth(token)).status_code == 403


def test_stats_date_window(client, register_user, create_product, auth):
    user, token = register_user()
    _, admin = register_user(role="admin")
    order = _place_order(client, user["_id"], create_product()["_id"])
    _pay(client, auth, token, order["_id"])

    past = client.get(
        "/api/payments/admin/stats",
        params={"startDate": "2000-01-01", "endDate": "2000-12-31T23:59:59Z"},
        headers=auth(admin),
    ).json()
    assert past["totalPayments"] == 0

    only_start = client.get("/api/payments/admin/stats", params={"startDate": "2000-01-01"}, headers=auth(admin))
    assert only_start.json()["totalPayments"] == 1

    bad = client.get("/api/payments/admin/stats", params={"startDate": "yesterday"}, headers=auth(admin))
    assert bad.status_code == 400


def test_webhook_is_acknowledged_without_auth(client):
    resp = client.post("/api/payments/webhook/razorpay", json={"event": "payment.captured"})

    assert resp.json() == {"received": True, "gateway": "razorpay"}
    assert get_buffered_events()[-1] == {
        "type": PAYMENT_WEBHOOK_RECEIVED,
        "payload": {"gateway": "razorpay", "keys": ["event"]},
    }
