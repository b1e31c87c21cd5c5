"""Liveness endpoint reporting environment and database reachability."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from megamart.config import get_config
from megamart.db.base import ping_database
from megamart.logic.identifiers import utc_now_iso

router = APIRouter(tags=["Health"])


@router.get("/health", summary="API health")
def health() -> Dict[str, Any]:
    return {
        "status": "OK",
        "message": "MegaMart API is running",
        "environment": get_config().environment,
        "timestamp": utc_now_iso(),
        "database": "connected" if ping_database() else "unavailable",
    }


__all__ = ["router"]
