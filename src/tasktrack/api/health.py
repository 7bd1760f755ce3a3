"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from tasktrack import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness probe for load balancers and monitoring."""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    }
