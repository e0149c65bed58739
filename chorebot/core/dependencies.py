# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Dependency wiring: one engine instance with its repositories and services.
``build_engine`` is also what tests use to get an isolated engine.
"""

from dataclasses import dataclass
from typing import Optional

from chorebot.core.config import settings
from chorebot.core.errors import RotationError
from chorebot.core.logging import get_logger
from chorebot.metrics.prometheus import PENDING_PUNISHMENTS, PENDING_SWAPS
from chorebot.repositories.event_repository import EventRepository
from chorebot.repositories.snapshot_repository import SnapshotRepository
from chorebot.repositories.state_repository import StateRepository
from chorebot.services.authorization import AuthorizationGate
from chorebot.services.dispatcher import CommandDispatcher
from chorebot.services.identity import IdentityResolver
from chorebot.services.operator_client import OperatorAlertClient
from chorebot.services.punishment_service import PunishmentProtocol
from chorebot.services.rotation_service import RotationTracker
from chorebot.services.skip_service import SkipProtocol
from chorebot.services.snapshot_service import SnapshotService
from chorebot.services.swap_service import SwapProtocol

logger = get_logger(__name__)


@dataclass
class Engine:
    state_repo: StateRepository
    event_repo: EventRepository
    gate: AuthorizationGate
    identity: IdentityResolver
    rotation: RotationTracker
    swaps: SwapProtocol
    skips: SkipProtocol
    punishments: PunishmentProtocol
    snapshot: SnapshotService
    dispatcher: CommandDispatcher


def build_engine(
    snapshot_repo: Optional[SnapshotRepository] = None,
    operator_client: Optional[OperatorAlertClient] = None,
    max_authorized: int | None = None,
    max_admins: int | None = None,
    punishment_max_turns: int | None = None,
    require_reason: bool | None = None,
) -> Engine:
    state_repo = StateRepository()
    event_repo = EventRepository()
    gate = AuthorizationGate(state_repo, event_repo, max_authorized, max_admins)
    identity = IdentityResolver(state_repo, event_repo)
    rotation = RotationTracker(state_repo, event_repo, gate, identity)
    swaps = SwapProtocol(state_repo, event_repo, gate, identity)
    skips = SkipProtocol(state_repo, event_repo, gate, identity, rotation)
    punishments = PunishmentProtocol(
        state_repo,
        event_repo,
        gate,
        identity,
        rotation,
        max_turns=punishment_max_turns,
        require_reason=require_reason,
    )
    snapshot = SnapshotService(
        state_repo, snapshot_repo, operator_client or OperatorAlertClient()
    )
    dispatcher = CommandDispatcher(
        state_repo, gate, identity, rotation, swaps, skips, punishments
    )
    return Engine(
        state_repo=state_repo,
        event_repo=event_repo,
        gate=gate,
        identity=identity,
        rotation=rotation,
        swaps=swaps,
        skips=skips,
        punishments=punishments,
        snapshot=snapshot,
        dispatcher=dispatcher,
    )


def seed_engine(engine: Engine) -> None:
    """Configured members, aliases and bootstrap access for a fresh engine."""
    with engine.state_repo.lock:
        engine.state_repo.clear()
        engine.event_repo.clear()
        engine.rotation.seed(settings.ROTATION_MEMBERS)
        PENDING_SWAPS.set(0)
        PENDING_PUNISHMENTS.set(0)
        try:
            for caller_id, member_ref in settings.MEMBER_ALIASES:
                engine.identity.link(caller_id, member_ref)
            for caller_id in settings.BOOTSTRAP_ADMINS:
                engine.gate.add_admin(caller_id)
            for caller_id in settings.BOOTSTRAP_AUTHORIZED:
                engine.gate.add_authorized(caller_id)
        except RotationError as exc:
            logger.error("Bootstrap configuration rejected: %s", exc.message)


# ── Singleton engine ──
_engine = build_engine(
    snapshot_repo=(
        SnapshotRepository(settings.SNAPSHOT_PATH) if settings.SNAPSHOT_ENABLED else None
    ),
)
seed_engine(_engine)


# ── FastAPI dependency functions ──
def get_engine() -> Engine:
    return _engine


def get_dispatcher() -> CommandDispatcher:
    return _engine.dispatcher


def get_rotation() -> RotationTracker:
    return _engine.rotation


def get_swaps() -> SwapProtocol:
    return _engine.swaps


def get_punishments() -> PunishmentProtocol:
    return _engine.punishments


def get_snapshot_service() -> SnapshotService:
    return _engine.snapshot


def get_event_repo() -> EventRepository:
    return _engine.event_repo
