"""Health check endpoints.

- /health: Liveness (is the app running?)
- /health/ready: Readiness (can it reach the database?)
"""

import logging
import time
from typing import Dict, Any
from datetime import datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from procurement import __version__
from procurement.api.deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def check_database(db: Session) -> Dict[str, Any]:
    """Check database connectivity."""
    start = time.perf_counter()
    try:
        db.execute(text("SELECT 1")).fetchone()
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)
        return {
            "status": "unhealthy",
            "error": str(e),
        }
    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - start) * 1000, 2),
    }


@router.get("/health")
async def health_check():
    """Basic health check. Always returns 200 if the app is running."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/health/ready")
async def readiness_probe(db: Session = Depends(get_db)):
    """Returns 503 when the database is unreachable."""
    database = check_database(db)
    healthy = database["status"] == "healthy"

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if healthy else "not_ready",
            "version": __version__,
            "timestamp": datetime.utcnow().isoformat(),
            "checks": {"database": database},
        },
    )
