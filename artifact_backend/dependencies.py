"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from artifact_backend.config import get_settings
from artifact_backend.db import DbClient, InMemoryDbClient, SqlDbClient

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client; one connection pool serves every request.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory artifact store")
        _db_client = InMemoryDbClient()
    else:
        logger.info("Using SQL artifact store")
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def close_db_client() -> None:
    global _db_client
    if _db_client is None:
        return
    _db_client.close()
    _db_client = None
    logger.info("Artifact store closed")
