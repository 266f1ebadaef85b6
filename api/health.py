from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session
from sqlalchemy import text
from api.dependencies import get_db
import logging

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@router.get("/")
def index():
    return {
        "success": True,
        "message": "Receipt Gateway is running",
        "version": VERSION,
        "docs": "/docs",
    }


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for monitoring and load balancers.
    Returns 200 OK with the database status.
    """
    try:
        # Test database connectivity
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "unhealthy", "database": "unavailable"}


@router.get("/metrics")
def metrics():
    """Prometheus exposition, including access log write failures."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
