"""Configuration utilities for the storefront API.

This module loads application configuration with the following rules:
- Primary source: `megamart_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("megamart_config.json")
logger = logging.getLogger(__name__)

# Origins the storefront dev server is served from outside production
DEV_ORIGINS: List[str] = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
]


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: log and ignore unreadable override
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _truthy(text: object) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    url: str
    auto_apply_migrations: bool = Field(default=True)

    @field_validator("url")
    @classmethod
    def url_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.url must be a non-empty string")
        return v


class AuthConfig(BaseModel):
    jwt_secret: str = Field(min_length=8)
    algorithm: str = Field(default="HS256")
    token_expire_minutes: int = Field(gt=0)


class CorsConfig(BaseModel):
    origins: List[str]


class StoreConfig(BaseModel):
    default_currency: str
    default_country: str = Field(min_length=1)

    @field_validator("default_currency")
    @classmethod
    def currency_must_be_iso_code(cls, v: str) -> str:
        v = (v or "").strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("store.default_currency must be a 3-letter currency code")
        return v


class AppConfig(BaseModel):
    environment: str
    database: DatabaseConfig
    auth: AuthConfig
    cors: CorsConfig
    store: StoreConfig

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) megamart_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    environment = (_env("APP_ENV") or _read_config_file("app.env") or _base("environment", "development")).strip().lower()

    # Database
    url = _env("DATABASE_URL") or _read_config_file("database.url") or _base("database.url") or "sqlite+pysqlite:///:memory:"
    auto_apply_text = _env("AUTO_APPLY_MIGRATIONS") or _read_config_file("database.auto_apply_migrations") or _base("database.auto_apply_migrations", "true")

    # Auth
    jwt_secret = _env("JWT_SECRET") or _read_config_file("auth.jwt_secret") or _base("auth.jwt_secret", "dev-secret-change-me")
    expire_text = _env("TOKEN_EXPIRE_MINUTES") or _read_config_file("auth.token_expire_minutes") or _base("auth.token_expire_minutes", str(60 * 24 * 7))

    # CORS: production serves the configured frontend (any origin when unset)
    frontend_url = _env("FRONTEND_URL") or _read_config_file("cors.frontend_url") or _base("cors.frontend_url")
    if environment == "production":
        origins = [frontend_url] if frontend_url else ["*"]
    else:
        origins = list(DEV_ORIGINS)

    # Store defaults
    currency = _env("DEFAULT_CURRENCY") or _read_config_file("store.default_currency") or _base("store.default_currency", "INR")
    country = _env("DEFAULT_COUNTRY") or _read_config_file("store.default_country") or _base("store.default_country", "India")

    try:
        cfg = AppConfig(
            environment=environment,
            database=DatabaseConfig(url=url, auto_apply_migrations=_truthy(auto_apply_text)),
            auth=AuthConfig(jwt_secret=jwt_secret, token_expire_minutes=int(str(expire_text).strip())),
            cors=CorsConfig(origins=origins),
            store=StoreConfig(default_currency=currency, default_country=country),
        )
        return cfg
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Return the process-wide configuration, loading it on first use."""
    return load_config()


def reset_config_cache() -> None:
    get_config.cache_clear()


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "AuthConfig",
    "CorsConfig",
    "StoreConfig",
    "DEV_ORIGINS",
    "load_config",
    "get_config",
    "reset_config_cache",
]
