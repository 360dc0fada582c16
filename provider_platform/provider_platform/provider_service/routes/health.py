"""
Liveness and readiness probes for the Provider service
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from ..config import settings
from ..db import check_db_connection, missing_tables

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

SERVICE_NAME = "provider-service"


@router.get("/health", status_code=status.HTTP_200_OK)
def health_check() -> Dict[str, Any]:
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/ready", status_code=status.HTTP_200_OK)
def readiness_check() -> Dict[str, Any]:
    """
    Ready once the database answers and the provider and identity tables exist.

    Raises:
        HTTPException: 503 with the failing component otherwise
    """
    report = {
        "service": SERVICE_NAME,
        "environment": settings.ENVIRONMENT,
        "database": "disconnected",
        "missing_tables": [],
    }

    if check_db_connection():
        report["database"] = "connected"
        try:
            report["missing_tables"] = missing_tables()
        except SQLAlchemyError as e:
            logger.error("Schema inspection failed: %s", e)
            report["database"] = "disconnected"

    ready = report["database"] == "connected" and not report["missing_tables"]
    report["status"] = "ready" if ready else "not_ready"
    if not ready:
        logger.warning("Readiness check failed: %s", report)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=report)

    return report
