# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Skip protocol.
The member whose turn it is may ask to be skipped; an admin decides.
Approval moves the cursor past them without crediting a completion.
"""

from datetime import datetime, timezone
from typing import Optional

from chorebot.core.errors import (
    InvalidArgumentsError,
    NoCurrentTurnError,
    NotYourTurnError,
    RequestNotFoundError,
)
from chorebot.core.logging import get_logger
from chorebot.metrics.prometheus import SKIP_DECISIONS
from chorebot.models.domain import RotationMember, SkipRequest
from chorebot.repositories.event_repository import EventRepository
from chorebot.repositories.state_repository import StateRepository
from chorebot.services.authorization import AuthorizationGate
from chorebot.services.identity import IdentityResolver, normalize_ref
from chorebot.services.rotation_service import RotationTracker

logger = get_logger(__name__)


class SkipProtocol:
    """One pending skip request per member, decided by admins."""

    def __init__(
        self,
        state_repo: StateRepository,
        event_repo: EventRepository,
        gate: AuthorizationGate,
        identity: IdentityResolver,
        rotation: RotationTracker,
    ) -> None:
        self._state = state_repo
        self._events = event_repo
        self._gate = gate
        self._identity = identity
        self._rotation = rotation

    def pending(self) -> list[SkipRequest]:
        return list(self._state.state.skip_requests.values())

    def request(self, caller_id: str, reason: str = "") -> SkipRequest:
        self._gate.require_authorized(caller_id)
        current = self._rotation.current_turn()
        if current is None:
            raise NoCurrentTurnError()
        caller = self._identity.resolve_member(caller_id)
        if caller is None or caller.id != current.id:
            raise NotYourTurnError(
                f"Only the member on turn can ask to skip. Current turn: {current.display_name}"
            )
        skips = self._state.state.skip_requests
        if current.id in skips:
            raise InvalidArgumentsError("You already have a pending skip request")

        request = SkipRequest(
            member=current,
            requester_id=caller_id,
            reason=reason.strip(),
            created_at=datetime.now(timezone.utc),
        )
        skips[current.id] = request
        self._events.record(
            "skip_requested", caller_id, {"member_id": current.id, "reason": request.reason}
        )
        logger.info("Skip requested: member=%s", current.id)
        return request

    def approve(
        self, member_ref: str, admin_id: str
    ) -> tuple[SkipRequest, Optional[RotationMember]]:
        """Returns the request and the member now on turn."""
        request = self._decidable(member_ref, admin_id)
        current = self._rotation.current_turn()
        if current is None or current.id != request.member.id:
            self._close(request, "stale", admin_id)
            raise RequestNotFoundError(
                f"Skip request for {request.member.display_name} is no longer valid: "
                "it is not their turn anymore",
                state_changed=True,
            )
        self._close(request, "approved", admin_id)
        next_member = self._rotation.advance_past(request.member)
        return request, next_member

    def reject(self, member_ref: str, admin_id: str) -> SkipRequest:
        request = self._decidable(member_ref, admin_id)
        self._close(request, "rejected", admin_id)
        return request

    # ── Internal ──

    def _decidable(self, member_ref: str, admin_id: str) -> SkipRequest:
        self._gate.require_admin(admin_id)
        skips = self._state.state.skip_requests
        member = self._identity.resolve_member(member_ref)
        if member is not None and member.id in skips:
            return skips[member.id]
        key = normalize_ref(member_ref)
        for request in skips.values():
            if key in (request.member.id.lower(), request.member.display_name.lower()):
                return request
        raise RequestNotFoundError(f"No pending skip request for '{member_ref}'")

    def _close(self, request: SkipRequest, outcome: str, admin_id: str) -> None:
        self._state.state.skip_requests.pop(request.member.id, None)
        SKIP_DECISIONS.labels(outcome=outcome).inc()
        self._events.record(
            f"skip_{outcome}", admin_id, {"member_id": request.member.id}
        )
        logger.info("Skip %s: member=%s by %s", outcome, request.member.id, admin_id)
