# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Punishment protocol.

Anyone may petition for extra turns against a member; an admin approves or
rejects, or applies one directly. The state machine is
``pending -> approved | rejected`` and both outcomes are terminal. Approval
levies the owed turns on the rotation.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from chorebot.core.config import settings
from chorebot.core.errors import (
    AlreadyDecidedError,
    InvalidArgumentsError,
    InvalidTurnCountError,
    MemberNotFoundError,
    RequestNotFoundError,
)
from chorebot.core.logging import get_logger
from chorebot.metrics.prometheus import PENDING_PUNISHMENTS, PUNISHMENT_DECISIONS
from chorebot.models.domain import PunishmentRequest, PunishmentStatus
from chorebot.repositories.event_repository import EventRepository
from chorebot.repositories.state_repository import StateRepository
from chorebot.services.authorization import AuthorizationGate
from chorebot.services.identity import IdentityResolver
from chorebot.services.rotation_service import RotationTracker

logger = get_logger(__name__)


class PunishmentProtocol:
    """Admin-adjudicated extra-turn requests."""

    def __init__(
        self,
        state_repo: StateRepository,
        event_repo: EventRepository,
        gate: AuthorizationGate,
        identity: IdentityResolver,
        rotation: RotationTracker,
        min_turns: int | None = None,
        max_turns: int | None = None,
        require_reason: bool | None = None,
    ) -> None:
        self._state = state_repo
        self._events = event_repo
        self._gate = gate
        self._identity = identity
        self._rotation = rotation
        self.min_turns = settings.PUNISHMENT_MIN_TURNS if min_turns is None else min_turns
        self.max_turns = settings.PUNISHMENT_MAX_TURNS if max_turns is None else max_turns
        self.require_reason = (
            settings.PUNISHMENT_REQUIRE_REASON if require_reason is None else require_reason
        )

    # ── Queries ──

    def get(self, request_id: int) -> PunishmentRequest:
        request = self._state.state.punishment_requests.get(request_id)
        if request is None:
            raise RequestNotFoundError(f"Punishment request #{request_id} not found")
        return request

    def pending(self) -> list[PunishmentRequest]:
        return [r for r in self._all() if r.is_pending]

    def history(self, limit: Optional[int] = None) -> list[PunishmentRequest]:
        """Most recent first by submission time (ties broken by id)."""
        effective_limit = settings.PUNISHMENT_HISTORY_LIMIT if limit is None else limit
        ordered = sorted(
            self._all(), key=lambda r: (r.submitted_at, r.id), reverse=True
        )
        return ordered[:effective_limit]

    def stats(self) -> dict[str, Any]:
        requests = self._all()
        return {
            "total": len(requests),
            "pending": sum(1 for r in requests if r.status == PunishmentStatus.PENDING),
            "approved": sum(1 for r in requests if r.status == PunishmentStatus.APPROVED),
            "rejected": sum(1 for r in requests if r.status == PunishmentStatus.REJECTED),
            "adminCount": len(self._gate.admins()),
        }

    # ── Commands ──

    def submit(
        self,
        submitter_id: str,
        target_id: str,
        target_display_name: str,
        turns: int,
        reason: str,
    ) -> PunishmentRequest:
        """Open to any caller; only the decision is privileged."""
        if turns < self.min_turns or turns > self.max_turns:
            raise InvalidTurnCountError(
                f"Turns must be between {self.min_turns} and {self.max_turns}"
            )
        reason = (reason or "").strip()
        if self.require_reason and not reason:
            raise InvalidArgumentsError("A reason is required for punishment requests")

        state = self._state.state
        request = PunishmentRequest(
            id=state.next_punishment_id,
            submitter=submitter_id,
            target_id=target_id,
            target_display_name=target_display_name,
            turns=turns,
            reason=reason or "No reason provided",
            submitted_at=datetime.now(timezone.utc),
        )
        state.punishment_requests[request.id] = request
        state.next_punishment_id += 1
        self._refresh_gauge()

        self._events.record(
            "punishment_submitted",
            submitter_id,
            {"request_id": request.id, "target_id": target_id, "turns": turns},
        )
        logger.info("Punishment submitted: #%d target=%s turns=%d",
                    request.id, target_id, turns)
        return request

    def approve(self, request_id: int, admin_id: str) -> tuple[PunishmentRequest, int]:
        """Returns the request and the target's new owed-turn total."""
        request = self._decidable(request_id, admin_id)
        member = self._identity.resolve_member(request.target_id)
        if member is None:
            raise MemberNotFoundError(
                f"{request.target_display_name} is no longer in the rotation; "
                f"reject punishment #{request_id} instead"
            )

        total = self._rotation.add_owed_turns(member.id, request.turns)
        self._decide(request, PunishmentStatus.APPROVED, admin_id)
        return request, total

    def reject(self, request_id: int, admin_id: str) -> PunishmentRequest:
        request = self._decidable(request_id, admin_id)
        self._decide(request, PunishmentStatus.REJECTED, admin_id)
        return request

    def apply(
        self,
        admin_id: str,
        target_id: str,
        target_display_name: str,
        turns: int,
        reason: str,
    ) -> tuple[PunishmentRequest, int]:
        """
        Admin shortcut: the request is recorded and approved in one step,
        decided by ``admin_id``. Returns the request and the new owed total.
        """
        self._gate.require_admin(admin_id)
        request = self.submit(admin_id, target_id, target_display_name, turns, reason)
        return self.approve(request.id, admin_id)

    def purge_old(self, days_old: int | None = None, now: datetime | None = None) -> int:
        """
        Drop decided requests whose decision is older than ``days_old``.
        Pending requests are never purged.
        """
        days = settings.PUNISHMENT_RETENTION_DAYS if days_old is None else days_old
        if days < 0:
            raise InvalidArgumentsError("Days must not be negative")
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        requests = self._state.state.punishment_requests
        stale_ids = [
            rid for rid, r in requests.items()
            if not r.is_pending and r.decided_at is not None and r.decided_at < cutoff
        ]
        for rid in stale_ids:
            del requests[rid]
        if stale_ids:
            self._events.record(
                "punishments_purged", None, {"count": len(stale_ids), "days_old": days}
            )
            logger.info("Purged %d decided punishment requests older than %d days",
                        len(stale_ids), days)
        return len(stale_ids)

    # ── Internal ──

    def _all(self) -> list[PunishmentRequest]:
        return list(self._state.state.punishment_requests.values())

    def _decidable(self, request_id: int, admin_id: str) -> PunishmentRequest:
        self._gate.require_admin(admin_id)
        request = self.get(request_id)
        if not request.is_pending:
            raise AlreadyDecidedError(
                f"Punishment request #{request_id} was already {request.status.value}"
            )
        return request

    def _decide(
        self, request: PunishmentRequest, status: PunishmentStatus, admin_id: str
    ) -> None:
        request.status = status
        request.decided_by = admin_id
        request.decided_at = datetime.now(timezone.utc)
        self._refresh_gauge()
        PUNISHMENT_DECISIONS.labels(outcome=status.value).inc()
        self._events.record(
            f"punishment_{status.value}",
            admin_id,
            {
                "request_id": request.id,
                "target_id": request.target_id,
                "turns": request.turns,
            },
        )
        logger.info("Punishment %s: #%d by %s", status.value, request.id, admin_id)

    def _refresh_gauge(self) -> None:
        PENDING_PUNISHMENTS.set(len(self.pending()))
