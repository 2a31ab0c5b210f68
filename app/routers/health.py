"""
Health Check Router
Liveness plus reachability of the DynamoDB tables
"""
from fastapi import APIRouter
import logging

from app.core.config import settings
from app.db import dynamo
from app.models.common import to_iso, utcnow

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": to_iso(utcnow()),
    }


@router.get("/status")
def storage_status():
    """
    Check that every DynamoDB table is reachable and active.
    """
    tables = dynamo.table_status()
    connected = all(t["status"] == "ACTIVE" for t in tables.values())
    if not connected:
        logger.error(f"DynamoDB status check degraded: {tables}")

    return {
        "timestamp": to_iso(utcnow()),
        "region": settings.DYNAMO_REGION,
        "tables": tables,
        "overall_status": "healthy" if connected else "degraded",
    }
