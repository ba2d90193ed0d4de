"""
Health check endpoints for production deployment.

Provides:
- /health - Basic liveness check (is the app running?)
- /ready - Readiness check (is the game store reachable?)
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic liveness check - is the app running?

    This endpoint should always return 200 if the process is alive.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """
    Readiness check - can the app handle moves?

    Returns 503 if the game store cannot be reached.
    """
    store = request.app.state.store
    try:
        healthy = await store.ping()
        check = {"status": "ok" if healthy else "error", "backend": type(store).__name__}
    except Exception as e:
        logger.warning(f"Store health check failed: {e}")
        healthy = False
        check = {"status": "error", "backend": type(store).__name__, "message": str(e)}

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "ok" if healthy else "degraded",
            "checks": {"store": check},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
