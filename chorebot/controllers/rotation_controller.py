# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Read-only rotation, swap, punishment, event and snapshot views.
Thin HTTP layer. Every mutation goes through the command endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from chorebot.core.dependencies import (
    get_engine,
    get_event_repo,
    get_punishments,
    get_rotation,
    get_snapshot_service,
    get_swaps,
)
from chorebot.core.errors import RequestNotFoundError
from chorebot.repositories.event_repository import EventRepository
from chorebot.schemas.commands import PunishmentStatsResponse, RotationResponse
from chorebot.services.punishment_service import PunishmentProtocol
from chorebot.services.rotation_service import RotationTracker
from chorebot.services.snapshot_service import SnapshotService
from chorebot.services.swap_service import SwapProtocol

router = APIRouter(prefix="/api/v1", tags=["Rotation"])


# ── Rotation ──

@router.get("/rotation", response_model=RotationResponse)
def get_rotation_state(
    rotation: RotationTracker = Depends(get_rotation),
):
    """Members in order, the cursor, and owed punishment turns."""
    with get_engine().state_repo.lock:
        return rotation.describe()


@router.get("/swaps")
def list_pending_swaps(
    swaps: SwapProtocol = Depends(get_swaps),
):
    """Pending swap requests, oldest first."""
    with get_engine().state_repo.lock:
        return [r.model_dump(mode="json", by_alias=True) for r in swaps.pending()]


# ── Punishments ──

@router.get("/punishments")
def list_punishments(
    limit: Optional[int] = Query(default=None, ge=1, description="Max results"),
    punishments: PunishmentProtocol = Depends(get_punishments),
):
    """Punishment history, most recent first."""
    with get_engine().state_repo.lock:
        return [
            r.model_dump(mode="json", by_alias=True) for r in punishments.history(limit)
        ]


@router.get("/punishments/stats", response_model=PunishmentStatsResponse)
def get_punishment_stats(
    punishments: PunishmentProtocol = Depends(get_punishments),
):
    """Aggregated punishment counters."""
    with get_engine().state_repo.lock:
        return punishments.stats()


@router.get("/punishments/{request_id}")
def get_punishment(
    request_id: int,
    punishments: PunishmentProtocol = Depends(get_punishments),
):
    """A single punishment request."""
    try:
        return punishments.get(request_id).model_dump(mode="json", by_alias=True)
    except RequestNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


# ── Audit / snapshot ──

@router.get("/events/stats")
def get_event_stats(
    event_repo: EventRepository = Depends(get_event_repo),
):
    """Event counts by type."""
    return {"total": event_repo.count(), "by_type": event_repo.count_by_type()}


@router.get("/events")
def list_events(
    event_type: Optional[str] = None,
    actor: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, description="Max results"),
    event_repo: EventRepository = Depends(get_event_repo),
):
    """Audit log of rotation mutations."""
    return event_repo.get_all(event_type=event_type, actor=actor, limit=limit)


@router.get("/snapshot")
def get_snapshot(
    snapshot: SnapshotService = Depends(get_snapshot_service),
):
    """The serialized engine state, as written to the snapshot store."""
    return snapshot.serialize()
