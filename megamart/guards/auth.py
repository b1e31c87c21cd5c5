"""Authentication dependencies for protected routes.

`get_current_user` resolves the bearer token to an active user record;
`require_admin` additionally insists on the admin role.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Header

from megamart.logic.auth import InvalidTokenError, decode_access_token
from megamart.logic.problem_factory import forbidden, unauthorized
from megamart.logic.repository_users import get_user

logger = logging.getLogger(__name__)


def get_current_user(authorization: Optional[str] = Header(default=None)) -> Dict[str, Any]:
    if not authorization or not authorization.startswith("Bearer "):
        raise unauthorized("Not authenticated")
    token = authorization.split(" ", 1)[1].strip()
    try:
        user_id = decode_access_token(token)
    except InvalidTokenError as exc:
        logger.info("auth_token_rejected reason=%s", exc)
        raise unauthorized(str(exc))
    user = get_user(user_id)
    if not user or not user.get("isActive", True):
        raise unauthorized("User not found")
    return user


def get_optional_user(authorization: Optional[str] = Header(default=None)) -> Optional[Dict[str, Any]]:
    """Resolve the caller when a bearer token is sent; anonymous callers get None."""
    if authorization is None:
        return None
    return get_current_user(authorization)


def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != "admin":
        raise forbidden("Admin access required")
    return user


__all__ = ["get_current_user", "get_optional_user", "require_admin"]
