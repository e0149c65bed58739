# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Swap protocol.
Propose / approve / reject exchange of two members' positions. Only the
invited counterparty may answer a proposal.
"""

from datetime import datetime, timezone

from chorebot.core.errors import (
    MemberNotFoundError,
    NotTargetUserError,
    RequestNotFoundError,
    SelfSwapError,
)
from chorebot.core.logging import get_logger
from chorebot.metrics.prometheus import PENDING_SWAPS, SWAP_DECISIONS
from chorebot.models.domain import SwapRequest
from chorebot.repositories.event_repository import EventRepository
from chorebot.repositories.state_repository import StateRepository
from chorebot.services.authorization import AuthorizationGate
from chorebot.services.identity import IdentityResolver
from chorebot.services.rotation import position_of, swap_positions

logger = get_logger(__name__)


class SwapProtocol:
    """Peer-to-peer swap requests between rotation members."""

    def __init__(
        self,
        state_repo: StateRepository,
        event_repo: EventRepository,
        gate: AuthorizationGate,
        identity: IdentityResolver,
    ) -> None:
        self._state = state_repo
        self._events = event_repo
        self._gate = gate
        self._identity = identity

    # ── Queries ──

    def pending(self) -> list[SwapRequest]:
        return [
            self._state.state.swap_requests[k]
            for k in sorted(self._state.state.swap_requests)
        ]

    def get(self, request_id: int) -> SwapRequest:
        request = self._state.state.swap_requests.get(request_id)
        if request is None:
            raise RequestNotFoundError(f"Swap request #{request_id} not found")
        return request

    # ── Commands ──

    def propose(self, requester_id: str, target_ref: str) -> SwapRequest:
        self._gate.require_authorized(requester_id)
        requester = self._identity.resolve_member(requester_id)
        target = self._identity.resolve_member(target_ref)
        if requester is None or target is None:
            raise MemberNotFoundError("One or both users not found in the rotation")
        if requester.id == target.id:
            raise SelfSwapError()

        state = self._state.state
        request = SwapRequest(
            id=state.next_swap_id,
            requester=requester,
            target=target,
            created_at=datetime.now(timezone.utc),
        )
        state.swap_requests[request.id] = request
        state.next_swap_id += 1
        PENDING_SWAPS.set(len(state.swap_requests))

        self._events.record(
            "swap_proposed",
            requester_id,
            {"request_id": request.id, "requester": requester.id, "target": target.id},
        )
        logger.info("Swap proposed: #%d %s -> %s", request.id, requester.id, target.id)
        return request

    def approve(self, request_id: int, approver_id: str) -> SwapRequest:
        request = self._answerable(request_id, approver_id)
        swap_positions(
            self._state.state.rotation.members, request.requester.id, request.target.id
        )
        self._close(request, "approved", approver_id)
        return request

    def reject(self, request_id: int, rejector_id: str) -> SwapRequest:
        request = self._answerable(request_id, rejector_id)
        self._close(request, "rejected", rejector_id)
        return request

    # ── Internal ──

    def _answerable(self, request_id: int, caller_id: str) -> SwapRequest:
        """
        Look up a request the caller may answer. A request whose members
        left the rotation is stale: a party to it, an authorized caller or an
        admin drops it and gets MemberNotFound, anyone else NotTargetUser.
        """
        request = self.get(request_id)
        caller = self._identity.resolve_member(caller_id)

        members = self._state.state.rotation.members
        if (
            position_of(members, request.requester.id) is None
            or position_of(members, request.target.id) is None
        ):
            is_party = caller is not None and caller.id in (
                request.requester.id, request.target.id
            )
            if is_party or self._gate.is_authorized(caller_id) or self._gate.is_admin(caller_id):
                self._close(request, "stale", caller_id)
                raise MemberNotFoundError(
                    f"Swap request #{request_id} is stale: "
                    "a member is no longer in the rotation",
                    state_changed=True,
                )

        if caller is None or caller.id != request.target.id:
            raise NotTargetUserError(
                f"Only {request.target.display_name} can answer swap request #{request_id}"
            )
        return request

    def _close(self, request: SwapRequest, outcome: str, actor_id: str) -> None:
        state = self._state.state
        state.swap_requests.pop(request.id, None)
        PENDING_SWAPS.set(len(state.swap_requests))
        SWAP_DECISIONS.labels(outcome=outcome).inc()
        self._events.record(
            f"swap_{outcome}",
            actor_id,
            {
                "request_id": request.id,
                "requester": request.requester.id,
                "target": request.target.id,
            },
        )
        logger.info("Swap %s: #%d by %s", outcome, request.id, actor_id)
