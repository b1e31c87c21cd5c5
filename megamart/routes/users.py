"""User account endpoints and login.

Passwords are hashed on registration and never returned. Login accepts an
email or username and answers 503 with `fallback: true` when the database
cannot be reached so clients can switch to their local store. Registration
always creates a `user`; changing `role` or `isActive` needs an admin token.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from megamart.db.base import ping_database
from megamart.guards.auth import get_optional_user, require_admin
from megamart.guards.ids import require_object_id
from megamart.logic.auth import create_access_token, hash_password, verify_password
from megamart.logic.problem_factory import bad_request, database_unavailable, not_found, unauthorized
from megamart.logic.query_helpers import DuplicateError, pagination
from megamart.logic.repository_users import (
    create_user,
    delete_user,
    find_login_candidate,
    get_user,
    list_users,
    update_user,
)
from megamart.models.users import LoginRequest, UserCreate, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

_INVALID_ID = "Invalid user ID format"
_ADMIN_ONLY_FIELDS = {"role", "is_active"}


@router.get("", summary="List users")
def get_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
) -> Dict[str, Any]:
    users, total = list_users(page, limit, search)
    return {"users": users, "pagination": pagination(page, limit, total)}


@router.get("/{user_id}", summary="Get one user")
def get_one_user(user_id: str) -> Dict[str, Any]:
    require_object_id(user_id, _INVALID_ID)
    user = get_user(user_id)
    if user is None:
        raise not_found("User not found")
    return user


@router.post("", status_code=201, summary="Register a user")
def post_user(payload: UserCreate) -> Dict[str, Any]:
    data = payload.columns()
    password = data.pop("password")
    try:
        user = create_user(data, hash_password(password))
    except DuplicateError as exc:
        raise bad_request(str(exc))
    logger.info("user_created id=%s role=%s", user["_id"], user["role"])
    return user


@router.put("/{user_id}", summary="Update a user")
def put_user(
    user_id: str,
    payload: UserUpdate,
    caller: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> Dict[str, Any]:
    require_object_id(user_id, _INVALID_ID)
    changes = payload.columns(partial=True)
    privileged = sorted(_ADMIN_ONLY_FIELDS.intersection(changes))
    if privileged:
        if caller is None:
            raise unauthorized("Not authenticated")
        require_admin(caller)
        logger.info("user_privileges_changed id=%s by=%s fields=%s", user_id, caller["_id"], privileged)
    try:
        user = update_user(user_id, changes)
    except DuplicateError as exc:
        raise bad_request(str(exc))
    if user is None:
        raise not_found("User not found")
    return user


@router.delete("/{user_id}", summary="Delete a user")
def remove_user(user_id: str) -> Dict[str, str]:
    require_object_id(user_id, _INVALID_ID)
    if not delete_user(user_id):
        raise not_found("User not found")
    logger.info("user_deleted id=%s", user_id)
    return {"message": "User deleted successfully"}


@router.post("/login", summary="Log in with email or username")
def login(payload: LoginRequest) -> Dict[str, Any]:
    if not ping_database():
        logger.warning("login_database_unavailable")
        raise database_unavailable()
    candidate = find_login_candidate(payload.identifier)
    if candidate is None:
        raise unauthorized("Invalid credentials")
    user, password_hash = candidate
    if not user["isActive"] or not verify_password(payload.password, password_hash):
        raise unauthorized("Invalid credentials")
    logger.info("login_succeeded user_id=%s", user["_id"])
    return {
        "message": "Login successful",
        "user": user,
        "token": create_access_token(user["_id"], user["role"]),
    }


__all__ = ["router"]
