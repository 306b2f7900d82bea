"""
Health check and metrics endpoints.
Served outside the versioned API prefix.
"""

from fastapi import APIRouter, HTTPException, status
from typing import Dict, Any
from estatehub.config import settings
from estatehub.database import get_database_info, test_database_connection, utcnow
from estatehub.middleware.performance import process_metrics, request_metrics
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/")
async def root() -> Dict[str, Any]:
    """
    Root endpoint providing basic API information.
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_v1_prefix
    }


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Liveness check including database connectivity.
    Used by Docker health checks and load balancers.
    """
    if not await test_database_connection():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed"
        )

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected",
        "timestamp": utcnow().isoformat()
    }


@router.get("/health/db")
async def database_health_check() -> Dict[str, Any]:
    """
    Database version and connection pool status.
    """
    info = await get_database_info()
    if "error" in info:
        logger.error(f"Database health check failed: {info['error']}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unhealthy"
        )
    return {"status": "healthy", "database": info}


@router.get("/metrics")
async def get_metrics() -> Dict[str, Any]:
    """
    Request metrics from the timing middleware plus process CPU and memory.
    """
    return {
        "timestamp": utcnow().isoformat(),
        "requests": request_metrics.summary(),
        "recent_slow_requests": request_metrics.recent_slow_requests(limit=5),
        "resources": process_metrics(),
        "configuration": {
            "slow_request_threshold": settings.slow_request_threshold
        }
    }
