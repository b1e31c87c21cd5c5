"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that turn every error
raised inside the API into an application/problem+json response.
"""

from __future__ import annotations

from typing import Any, Dict
import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # noqa: D401
    status = int(getattr(exc, "status_code", 500) or 500)
    if isinstance(exc.detail, dict):
        body: Dict[str, Any] = exc.detail
    else:
        body = {"title": "Error", "status": status, "detail": str(exc.detail or "")}
    headers = dict(exc.headers) if getattr(exc, "headers", None) else None
    return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=headers)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    detail = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Request validation failed"))
    logger.info("request_validation_failed path=%s detail=%s", request.url.path, detail)
    problem = {
        "title": "Invalid Request",
        "status": 400,
        "detail": detail,
        "errors": errors,
    }
    return JSONResponse(problem, status_code=400, media_type=PROBLEM_MEDIA_TYPE)


async def handle_database_unavailable(request: Request, exc: OperationalError) -> JSONResponse:  # noqa: D401
    logger.error("database_unavailable path=%s", request.url.path, exc_info=True)
    problem = {
        "title": "Service Unavailable",
        "status": 503,
        "detail": "Database not available",
        "error": "Database not available",
        "fallback": True,
    }
    return JSONResponse(problem, status_code=503, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=True)
    return JSONResponse(
        {"title": "Internal Server Error", "status": 500, "detail": "Something went wrong!"},
        status_code=500,
        media_type=PROBLEM_MEDIA_TYPE,
    )


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_database_unavailable",
    "handle_unexpected_error",
]
