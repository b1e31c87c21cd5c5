"""FastAPI application factory for the MegaMart API."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from megamart.config import get_config
from megamart.db.base import get_engine
from megamart.db.migrations_runner import apply_migrations
from megamart.http.problem import (
    handle_database_unavailable,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from megamart.http.request_id import RequestIdMiddleware
from megamart.logging_setup import configure_logging
from megamart.logic.problem_factory import not_found
from megamart.middleware.cors import apply_cors
from megamart.routes import api_router

logger = logging.getLogger(__name__)

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def create_app() -> FastAPI:
    configure_logging()
    config = get_config()
    app = FastAPI(title="MegaMart API", version="1.0.0")

    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(OperationalError, handle_database_unavailable)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(RequestIdMiddleware)
    apply_cors(app, origins=config.cors.origins)

    @app.on_event("startup")
    def _apply_migrations() -> None:
        if not config.database.auto_apply_migrations:
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        try:
            applied = apply_migrations(get_engine())
        except OperationalError:
            # Serve in degraded mode; login and health report the outage
            logger.error("startup_migrations_failed", exc_info=True)
            return
        logger.info("startup_migrations_done applied=%s", applied)

    app.include_router(api_router, prefix="/api")

    # Registered last so every concrete /api route matches first
    @app.api_route("/api/{rest:path}", methods=_ALL_METHODS, include_in_schema=False)
    def unknown_api_endpoint(rest: str) -> None:
        raise not_found("API endpoint not found")

    logger.info("app_created environment=%s origins=%s", config.environment, config.cors.origins)
    return app


__all__ = ["create_app"]
