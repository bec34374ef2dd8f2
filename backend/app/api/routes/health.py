"""Health Probes — liveness and database readiness for the neighbor graph API.

Invariants:
    - GET /health/ returns 200 while the process serves requests
    - GET /health/ready returns 503 until init_db has run and SELECT 1 succeeds
    - The session manager is looked up on every call, never bound at import

Design Decisions:
    - Readiness fails closed: no manager and a failed query both answer 503
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import app.infrastructure.database as db_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE_NAME = "neighbor-graph-api"
SERVICE_VERSION = "1.0.0"


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


async def _database_reason() -> str | None:
    manager = db_module.db_manager
    if manager is None:
        return "database_not_initialized"
    if not await manager.health_check():
        return "database_unavailable"
    return None


@router.get("/ready")
async def readiness_check():
    """Ready once the connection graph store answers queries."""
    reason = await _database_reason()
    if reason is not None:
        logger.warning("Readiness check failed", extra={"error_code": reason})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": reason},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
