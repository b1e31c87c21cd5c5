"""Functional tests for user accounts and login."""

from __future__ import annotations

from unittest import mock

import pytest


def _body(**overrides):
    body = {
        "email": "  Ada@Example.COM ",
        "username": "ada",
        "password": "analytical",
        "name": "Ada Lovelace",
    }
    body.update(overrides)
    return body


def test_register_normalises_email_and_hides_password(client):
    resp = client.post("/api/users", json=_body())

    assert resp.status_code == 201
    user = resp.json()
    assert user["email"] == "ada@example.com"
    assert user["role"] == "user"
    assert user["isActive"] is True
    assert user["preferences"] == {"newsletter": True, "notifications": True}
    assert "password" not in user
    assert "passwordHash" not in user


def test_duplicate_email_or_username_is_rejected(client):
    client.post("/api/users", json=_body())

    assert client.post("/api/users", json=_body(username="other")).status_code == 400
    assert client.post("/api/users", json=_body(email="new@example.com")).status_code == 400


def test_register_requires_valid_email_and_name(client):
    assert client.post("/api/users", json=_body(email="not-an-email")).status_code == 400
    assert client.post("/api/users", json=_body(name="  ")).status_code == 400


@pytest.mark.parametrize("identifier", ["ada@example.com", "ADA@example.com", "ada"])
def test_login_accepts_email_or_username(client, identifier):
    client.post("/api/users", json=_body())

    resp = client.post("/api/users/login", json={"identifier": identifier, "password": "analytical"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert body["user"]["username"] == "ada"
    assert body["token"]


def test_login_rejects_bad_password_unknown_user_and_inactive_accounts(client, register_user, auth):
    user = client.post("/api/users", json=_body()).json()
    _, admin = register_user(role="admin")

    wrong = client.post("/api/users/login", json={"identifier": "ada", "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Invalid credentials"

    unknown = client.post("/api/users/login", json={"identifier": "ghost", "password": "analytical"})
    assert unknown.status_code == 401

    deactivated = client.put(f"/api/users/{user['_id']}", json={"isActive": False}, headers=auth(admin))
    assert deactivated.json()["isActive"] is False
    inactive = client.post("/api/users/login", json={"identifier": "ada", "password": "analytical"})
    assert inactive.status_code == 401


def test_login_reports_database_outage_with_fallback_flag(client):
    with mock.patch("megamart.routes.users.ping_database", return_value=False):
        resp = client.post("/api/users/login", json={"identifier": "ada", "password": "x"})

    assert resp.status_code == 503
    body = resp.json()
    assert body["error"] == "Database not available"
    assert body["fallback"] is True


def test_list_users_searches_and_paginates(client):
    client.post("/api/users", json=_body())
    client.post("/api/users", json=_body(email="grace@example.com", username="grace", name="Grace Hopper"))

    everyone = client.get("/api/users").json()
    assert everyone["pagination"]["total"] == 2

    found = client.get("/api/users", params={"search": "hopper"}).json()
    assert [u["username"] for u in found["users"]] == ["grace"]


def test_update_user_applies_partial_changes_and_ignores_password(client):
    user = client.post("/api/users", json=_body()).json()

    resp = client.put(
        f"/api/users/{user['_id']}",
        json={"name": "Countess Lovelace", "password": "changed", "profile": {"phone": "555"}},
    )

    assert resp.status_code == 200
    assert resp.json()["name"] == "Countess Lovelace"
    assert resp.json()["profile"]["phone"] == "555"
    still_works = client.post("/api/users/login", json={"identifier": "ada", "password": "analytical"})
    assert still_works.status_code == 200


def test_get_update_delete_validate_ids(client):
    assert client.get("/api/users/xyz").json()["detail"] == "Invalid user ID format"
    assert client.get("/api/users/0123456789abcdef01234567").json()["detail"] == "User not found"
    assert client.put("/api/users/0123456789abcdef01234567", json={"name": "X"}).status_code == 404

    user = client.post("/api/users", json=_body()).json()
    assert client.delete(f"/api/users/{user['_id']}").json() == {"message": "User deleted successfully"}
    assert client.delete(f"/api/users/{user['_id']}").status_code == 404


def test_registration_ignores_a_requested_admin_role(client, auth):
    user = client.post("/api/users", json=_body(role="admin")).json()
    assert user["role"] == "user"

    token = client.post("/api/users/login", json={"identifier": "ada", "password": "analytical"}).json()["token"]

    assert client.get("/api/payments/admin/stats", headers=auth(token)).status_code == 403


def test_role_and_active_flag_changes_need_an_admin(client, register_user, auth):
    user, token = register_user()
    _, admin = register_user(role="admin")
    url = f"/api/users/{user['_id']}"

    anonymous = client.put(url, json={"role": "admin"})
    assert anonymous.status_code == 401
    own_token = client.put(url, json={"role": "admin"}, headers=auth(token))
    assert own_token.status_code == 403
    assert own_token.json()["detail"] == "Admin access required"
    assert client.put(url, json={"isActive": False}).status_code == 401
    assert client.get(url).json()["role"] == "user"
    assert client.get("/api/payments/admin/stats", headers=auth(token)).status_code == 403

    promoted = client.put(url, json={"role": "admin"}, headers=auth(admin))
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "admin"
    assert client.get("/api/payments/admin/stats", headers=auth(token)).status_code == 200


def test_profile_updates_stay_open_without_a_token(client):
    user = client.post("/api/users", json=_body()).json()

    resp = client.put(f"/api/users/{user['_id']}", json={"name": "A. Lovelace"})

    assert resp.status_code == 200
    assert resp.json()["role"] == "user"
