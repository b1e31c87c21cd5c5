"""Password hashing and bearer-token helpers.

Tokens are HS256 JWTs whose `sub` claim is the user id; the signing secret
and lifetime come from configuration.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from megamart.config import get_config

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be decoded or has no subject."""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised hash format
        return False


def create_access_token(user_id: str, role: str = "user", expires_delta: Optional[timedelta] = None) -> str:
    cfg = get_config().auth
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=cfg.token_expire_minutes))
    claims: Dict[str, Any] = {"sub": user_id, "role": role, "exp": expire}
    return jwt.encode(claims, cfg.jwt_secret, algorithm=cfg.algorithm)


def decode_access_token(token: str) -> str:
    """Return the user id carried by `token`."""
    cfg = get_config().auth
    try:
        payload = jwt.decode(token, cfg.jwt_secret, algorithms=[cfg.algorithm])
    except JWTError as exc:
        raise InvalidTokenError("Invalid or expired token") from exc
    subject = payload.get("sub")
    if not subject:
        raise InvalidTokenError("Invalid token")
    return str(subject)


__all__ = [
    "InvalidTokenError",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_access_token",
]
