import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from fitsocial.api.deps import get_storage
from fitsocial.core.config import settings
from fitsocial.db.async_session import check_async_database_health
from fitsocial.services.storage import AbstractStorage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=Dict[str, Any])
async def health_check(storage: AbstractStorage = Depends(get_storage)):
    """
    Basic health check endpoint.

    Returns:
        dict: Service name, storage backend and whether it answers
    """
    storage_ok = await storage.ping()
    return {
        "status": "healthy" if storage_ok else "unhealthy",
        "storage": settings.STORAGE_BACKEND,
        "storage_status": "connected" if storage_ok else "disconnected",
        "service": "fitsocial-backend",
    }


@router.get("/database", response_model=Dict[str, Any])
async def database_health_check():
    """
    Database health check with connection pool information.

    Returns:
        dict: Detailed database health status including pool metrics
    """
    if settings.STORAGE_BACKEND != "database":
        return {"status": "skipped", "storage": settings.STORAGE_BACKEND}

    try:
        return await check_async_database_health()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        raise HTTPException(status_code=503, detail=f"Database health check failed: {str(e)}")
