"""
Environment-driven configuration.

Every value is read at call time so tests and deployments can change the
environment without reloading modules.
"""

from __future__ import annotations

import os


DEFAULT_MONGODB_URL = "mongodb://localhost:27017"
DEFAULT_MONGODB_DATABASE = "halcrud"
DEFAULT_PAGE_SIZE = 25


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def mongodb_url() -> str:
    return _env_str("MONGODB_URL", DEFAULT_MONGODB_URL)


def mongodb_database() -> str:
    return _env_str("MONGODB_DATABASE", DEFAULT_MONGODB_DATABASE)


def mongodb_timeout_ms() -> int:
    return _env_int("MONGODB_TIMEOUT_MS", 5000)


def jwt_secret() -> str:
    # Local default keeps development simple.
    # In production, set JWT_SECRET in environment.
    return _env_str("JWT_SECRET", "dev-change-this-secret")


def jwt_algorithm() -> str:
    return _env_str("JWT_ALG", "HS256")


def access_token_expire_minutes() -> int:
    return _env_int("ACCESS_TOKEN_EXPIRE_MIN", 15)


def log_level() -> str:
    return _env_str("LOG_LEVEL", "INFO").upper()


def server_host() -> str:
    return _env_str("HOST", "127.0.0.1")


def server_port() -> int:
    return _env_int("PORT", 8000)
