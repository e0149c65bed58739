# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints (health, readiness, metrics).
Pure HTTP layer, no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from chorebot.core.config import settings
from chorebot.core.dependencies import get_engine

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe for Docker and orchestration."""
    engine = get_engine()
    state = engine.state_repo.state
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "members_count": len(state.rotation.members),
        "pending_swaps": len(state.swap_requests),
        "pending_punishments": len(engine.punishments.pending()),
        "events_recorded": engine.event_repo.count(),
        "last_snapshot_at": engine.snapshot.last_saved_at,
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness probe: the engine has a rotation to serve."""
    engine = get_engine()
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "rotation_loaded": len(engine.state_repo.state.rotation.members) > 0,
        "snapshot_enabled": engine.snapshot.enabled,
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
