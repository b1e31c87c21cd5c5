"""Saved address data access helpers.

Every query is scoped to the owning user. A user has at most one default
address: writes that set `is_default` clear the flag on the user's other
addresses in the same transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from megamart.db.base import get_engine
from megamart.logic.identifiers import new_object_id, utc_now_iso
from megamart.logic.query_helpers import as_bool, as_float

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, user_id, type, is_default, first_name, last_name, company, street, apartment, city, state, "
    "zip_code, country, phone, email, instructions, latitude, longitude, is_verified, label, "
    "created_at, updated_at"
)

_FIELDS = (
    "type",
    "is_default",
    "first_name",
    "last_name",
    "company",
    "street",
    "apartment",
    "city",
    "state",
    "zip_code",
    "country",
    "phone",
    "email",
    "instructions",
    "is_verified",
    "label",
)

_ORDERING = "ORDER BY is_default DESC, created_at DESC, id DESC"


def _to_address(row: Any) -> Dict[str, Any]:
    latitude = as_float(row["latitude"])
    longitude = as_float(row["longitude"])
    coordinates = None
    if latitude is not None or longitude is not None:
        coordinates = {"latitude": latitude, "longitude": longitude}
    return {
        "_id": row["id"],
        "id": row["id"],
        "user": row["user_id"],
        "type": row["type"],
        "isDefault": as_bool(row["is_default"]),
        "firstName": row["first_name"],
        "lastName": row["last_name"],
        "company": row["company"],
        "street": row["street"],
        "apartment": row["apartment"],
        "city": row["city"],
        "state": row["state"],
        "zipCode": row["zip_code"],
        "country": row["country"],
        "phone": row["phone"],
        "email": row["email"],
        "instructions": row["instructions"],
        "coordinates": coordinates,
        "isVerified": as_bool(row["is_verified"]),
        "label": row["label"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


def _coordinate_params(coordinates: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    coordinates = coordinates or {}
    return {"latitude": coordinates.get("latitude"), "longitude": coordinates.get("longitude")}


def _clear_other_defaults(conn: Connection, user_id: str, keep_id: str) -> None:
    conn.execute(
        sql_text("UPDATE addresses SET is_default = :off WHERE user_id = :uid AND id <> :id"),
        {"off": False, "uid": user_id, "id": keep_id},
    )


def _fetch(conn: Connection, user_id: str, address_id: str) -> Optional[Any]:
    return conn.execute(
        sql_text(f"SELECT {_COLUMNS} FROM addresses WHERE id = :id AND user_id = :uid"),
        {"id": address_id, "uid": user_id},
    ).mappings().first()


def list_addresses(user_id: str) -> List[Dict[str, Any]]:
    """Return the user's addresses, default first and then newest first."""
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM addresses WHERE user_id = :uid {_ORDERING}"),
            {"uid": user_id},
        ).mappings().all()
    return [_to_address(r) for r in rows]


def get_default_address(user_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM addresses WHERE user_id = :uid AND is_default = :on"),
            {"uid": user_id, "on": True},
        ).mappings().first()
    return _to_address(row) if row else None


def get_address(user_id: str, address_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().connect() as conn:
        row = _fetch(conn, user_id, address_id)
    return _to_address(row) if row else None


def create_address(user_id: str, data: Dict[str, Any], default_country: str) -> Dict[str, Any]:
    """Insert an address. The user's first address always becomes the default."""
    now = utc_now_iso()
    address_id = new_object_id()
    params: Dict[str, Any] = {f: data.get(f) for f in _FIELDS}
    params.update(_coordinate_params(data.get("coordinates")))
    params["type"] = params["type"] or "home"
    params["country"] = params["country"] or default_country
    params["is_verified"] = bool(params["is_verified"])
    params.update({"id": address_id, "user_id": user_id, "created_at": now, "updated_at": now})
    with get_engine().begin() as conn:
        existing = conn.execute(
            sql_text("SELECT COUNT(*) FROM addresses WHERE user_id = :uid"), {"uid": user_id}
        ).scalar_one()
        params["is_default"] = bool(params["is_default"]) or int(existing) == 0
        conn.execute(
            sql_text(
                """
                INSERT INTO addresses (id, user_id, type, is_default, first_name, last_name, company,
                                       street, apartment, city, state, zip_code, country, phone, email,
                                       instructions, latitude, longitude, is_verified, label,
                                       created_at, updated_at)
                VALUES (:id, :user_id, :type, :is_default, :first_name, :last_name, :company,
                        :street, :apartment, :city, :state, :zip_code, :country, :phone, :email,
                        :instructions, :latitude, :longitude, :is_verified, :label,
                        :created_at, :updated_at)
                """
            ),
            params,
        )
        if params["is_default"]:
            _clear_other_defaults(conn, user_id, address_id)
    logger.info("address_created id=%s user_id=%s default=%s", address_id, user_id, params["is_default"])
    return _to_address(params)


def update_address(user_id: str, address_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    params: Dict[str, Any] = {k: v for k, v in changes.items() if k in _FIELDS}
    if "coordinates" in changes:
        params.update(_coordinate_params(changes["coordinates"]))
    params["updated_at"] = utc_now_iso()
    sets = ", ".join(f"{col} = :{col}" for col in params)
    with get_engine().begin() as conn:
        if _fetch(conn, user_id, address_id) is None:
            return None
        conn.execute(
            sql_text(f"UPDATE addresses SET {sets} WHERE id = :id AND user_id = :uid"),
            {**params, "id": address_id, "uid": user_id},
        )
        if params.get("is_default"):
            _clear_other_defaults(conn, user_id, address_id)
    return get_address(user_id, address_id)


def set_default_address(user_id: str, address_id: str) -> Optional[Dict[str, Any]]:
    with get_engine().begin() as conn:
        if _fetch(conn, user_id, address_id) is None:
            return None
        conn.execute(
            sql_text("UPDATE addresses SET is_default = :on, updated_at = :now WHERE id = :id"),
            {"on": True, "now": utc_now_iso(), "id": address_id},
        )
        _clear_other_defaults(conn, user_id, address_id)
    return get_address(user_id, address_id)


def delete_address(user_id: str, address_id: str) -> bool:
    """Delete an address; a deleted default passes to the newest remaining address."""
    with get_engine().begin() as conn:
        row = _fetch(conn, user_id, address_id)
        if row is None:
            return False
        conn.execute(sql_text("DELETE FROM addresses WHERE id = :id"), {"id": address_id})
        if as_bool(row["is_default"]):
            successor = conn.execute(
                sql_text(
                    "SELECT id FROM addresses WHERE user_id = :uid "
                    "ORDER BY created_at DESC, id DESC LIMIT 1"
                ),
                {"uid": user_id},
            ).first()
            if successor is not None:
                conn.execute(
                    sql_text("UPDATE addresses SET is_default = :on, updated_at = :now WHERE id = :id"),
                    {"on": True, "now": utc_now_iso(), "id": successor[0]},
                )
    return True


__all__ = [
    "list_addresses",
    "get_default_address",
    "get_address",
    "create_address",
    "update_address",
    "set_default_address",
    "delete_address",
]
