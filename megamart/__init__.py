"""FastAPI application package for the MegaMart storefront API.

This package exposes the application factory used by the storefront API. It
wires cross-cutting middleware (request-id, CORS) and mounts the per-resource
routers. Data access lives in `megamart/logic/`, payload models in
`megamart/models/` and route handlers in `megamart/routes/`. The offline-capable
client data layer lives in `megamart/client/`.
"""

from __future__ import annotations

from megamart.main import create_app

__all__ = ["create_app"]
