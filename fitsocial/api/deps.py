"""
API dependency injection module.

Provides the storage backend every endpoint works against. The backend is
chosen by ``settings.STORAGE_BACKEND``: ``memory`` shares one process-wide
``MemoryStorage``; ``database`` wraps a request-scoped async session.
"""

import logging
from typing import AsyncGenerator, Optional

from fitsocial.core.config import settings
from fitsocial.db.async_session import get_async_db
from fitsocial.services.database_storage import DatabaseStorage
from fitsocial.services.memory_storage import MemoryStorage
from fitsocial.services.storage import AbstractStorage

logger = logging.getLogger(__name__)

_memory_storage: Optional[MemoryStorage] = None


def get_memory_storage() -> MemoryStorage:
    global _memory_storage

    if _memory_storage is None:
        _memory_storage = MemoryStorage(seed=settings.MEMORY_STORAGE_SEED)
        logger.info("Created in-memory storage (seed=%s)", settings.MEMORY_STORAGE_SEED)
    return _memory_storage


async def get_storage() -> AsyncGenerator[AbstractStorage, None]:
    """FastAPI dependency yielding the configured storage backend."""
    if settings.STORAGE_BACKEND == "memory":
        yield get_memory_storage()
        return

    async for session in get_async_db():
        yield DatabaseStorage(session)
