"""
Async MongoDB access helpers using motor.

This module owns the client. The server opens it on startup and closes it on
shutdown (see `halcrud/server.py`). Mappers receive plain collection objects
from `collection()` and never touch the client directly.
"""

from __future__ import annotations

import logging
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase

from . import settings

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None


class DatabaseError(RuntimeError):
    pass


async def init_client(url: str | None = None, **options: Any) -> AsyncIOMotorClient:
    """
    Create the shared client and check the server answers a ping.
    """
    global _client
    if _client is not None:
        return _client

    options.setdefault("serverSelectionTimeoutMS", settings.mongodb_timeout_ms())
    client = AsyncIOMotorClient(url or settings.mongodb_url(), **options)
    try:
        await client.admin.command("ping")
    except Exception:
        client.close()
        logger.exception("database_connection_failed")
        raise

    _client = client
    logger.info("Database connection established database=%s", settings.mongodb_database())
    return _client


async def close_client() -> None:
    global _client
    if _client is None:
        return None
    _client.close()
    _client = None
    logger.info("Database connection closed")


def client() -> AsyncIOMotorClient:
    if _client is None:
        raise DatabaseError("Mongo client is not initialized. Call init_client() on startup.")
    return _client


def database(name: str | None = None) -> AsyncIOMotorDatabase:
    return client()[name or settings.mongodb_database()]


def collection(name: str, *, database_name: str | None = None) -> AsyncIOMotorCollection:
    return database(database_name)[name]
