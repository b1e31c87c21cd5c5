"""Centralised construction of problem+json errors raised by route handlers.

Each helper returns an HTTPException whose detail is the RFC7807 body, so
route modules never embed status codes and titles inline.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Dict
import logging

from fastapi import HTTPException


logger = logging.getLogger(__name__)


def problem(status: int, detail: str, **extra: Any) -> HTTPException:
    body: Dict[str, Any] = {
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": detail,
    }
    body.update(extra)
    logger.info("problem status=%s detail=%s", status, detail)
    return HTTPException(status_code=status, detail=body)


def bad_request(detail: str, **extra: Any) -> HTTPException:
    return problem(400, detail, **extra)


def unauthorized(detail: str = "Not authenticated") -> HTTPException:
    exc = problem(401, detail)
    exc.headers = {"WWW-Authenticate": "Bearer"}
    return exc


def forbidden(detail: str) -> HTTPException:
    return problem(403, detail)


def not_found(detail: str) -> HTTPException:
    return problem(404, detail)


def database_unavailable() -> HTTPException:
    """503 telling clients to switch to their local-storage fallback."""
    return problem(503, "Database not available", error="Database not available", fallback=True)


__all__ = [
    "problem",
    "bad_request",
    "unauthorized",
    "forbidden",
    "not_found",
    "database_unavailable",
]
