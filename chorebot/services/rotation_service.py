# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation tracker.
Owns whose turn it is, turn completion, owed (punishment) turns and
membership changes. Every mutating call passes the authorization gate
before touching state.
"""

from dataclasses import dataclass
from typing import Any, Optional

from chorebot.core.errors import (
    InvalidArgumentsError,
    InvalidTurnCountError,
    NoCurrentTurnError,
    NotYourTurnError,
    SelfSwapError,
)
from chorebot.core.logging import get_logger
from chorebot.metrics.prometheus import TURNS_COMPLETED
from chorebot.models.domain import RotationMember
from chorebot.repositories.event_repository import EventRepository
from chorebot.repositories.state_repository import StateRepository
from chorebot.services.authorization import AuthorizationGate
from chorebot.services.identity import IdentityResolver
from chorebot.services.rotation import clamp_index, next_index, swap_positions, upcoming

logger = get_logger(__name__)


@dataclass
class TurnOutcome:
    completed: RotationMember
    next_member: Optional[RotationMember]
    owed_remaining: int = 0
    punishment_turn: bool = False


class RotationTracker:
    """Fixed-order rotation with a cursor and per-member owed turns."""

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

    def members(self) -> list[RotationMember]:
        return list(self._state.state.rotation.members)

    @property
    def current_index(self) -> int:
        return self._state.state.rotation.current_index

    def current_turn(self) -> Optional[RotationMember]:
        rotation = self._state.state.rotation
        if not rotation.members:
            return None
        return rotation.members[rotation.current_index]

    def owed_turns(self, member_id: str) -> int:
        return self._state.state.rotation.owed_turns.get(member_id, 0)

    def all_owed_turns(self) -> dict[str, int]:
        return {
            member_id: turns
            for member_id, turns in self._state.state.rotation.owed_turns.items()
            if turns > 0
        }

    def describe(self) -> dict[str, Any]:
        rotation = self._state.state.rotation
        current = self.current_turn()
        return {
            "members": [m.model_dump(by_alias=True) for m in self.members()],
            "current_index": self.current_index,
            "current": current.model_dump(by_alias=True) if current else None,
            "owed_turns": self.all_owed_turns(),
            "upcoming": [
                m.display_name
                for m in upcoming(rotation.members, rotation.current_index, len(rotation.members))
            ],
        }

    # ── Commands ──

    def complete_turn(self, caller_id: str) -> TurnOutcome:
        """
        Mark the current turn done. A member who owes punishment turns
        works one of them off and keeps the turn; otherwise the cursor moves on.
        """
        self._gate.require_authorized(caller_id)
        current = self.current_turn()
        if current is None:
            raise NoCurrentTurnError()

        caller = self._identity.resolve_member(caller_id)
        if caller is None or caller.id != current.id:
            raise NotYourTurnError(
                f"It's not your turn! Current turn: {current.display_name}"
            )

        state = self._state.state
        rotation = state.rotation
        owed = rotation.owed_turns.get(current.id, 0)
        if owed > 0:
            remaining = owed - 1
            if remaining:
                rotation.owed_turns[current.id] = remaining
            else:
                rotation.owed_turns.pop(current.id, None)
            TURNS_COMPLETED.labels(kind="punishment").inc()
        else:
            remaining = 0
            rotation.current_index = next_index(
                rotation.current_index, len(rotation.members)
            )
            state.skip_requests.pop(current.id, None)
            TURNS_COMPLETED.labels(kind="regular").inc()

        next_member = self.current_turn()
        self._events.record(
            "turn_completed",
            caller_id,
            {
                "member_id": current.id,
                "punishment_turn": owed > 0,
                "owed_remaining": remaining,
                "next_member_id": next_member.id if next_member else None,
            },
        )
        logger.info(
            "Turn completed: member=%s, punishment=%s, next=%s",
            current.id, owed > 0, next_member.id if next_member else None,
        )
        return TurnOutcome(
            completed=current,
            next_member=next_member,
            owed_remaining=remaining,
            punishment_turn=owed > 0,
        )

    def add_owed_turns(self, member_id: str, turns: int) -> int:
        """Levy extra turns on a member. Returns their new total."""
        if turns < 1:
            raise InvalidTurnCountError()
        owed = self._state.state.rotation.owed_turns
        owed[member_id] = owed.get(member_id, 0) + turns
        logger.info("Owed turns added: member=%s, turns=%d, total=%d",
                    member_id, turns, owed[member_id])
        return owed[member_id]

    def advance_past(self, member: RotationMember) -> Optional[RotationMember]:
        """Move the cursor off ``member`` without crediting a completion."""
        rotation = self._state.state.rotation
        rotation.current_index = next_index(rotation.current_index, len(rotation.members))
        self._state.state.skip_requests.pop(member.id, None)
        return self.current_turn()

    def force_swap(
        self, admin_id: str, first_ref: str, second_ref: str
    ) -> tuple[RotationMember, RotationMember]:
        """Admin-only immediate exchange of two members' positions."""
        self._gate.require_admin(admin_id)
        first = self._identity.require_member(first_ref)
        second = self._identity.require_member(second_ref)
        if first.id == second.id:
            raise SelfSwapError("Pick two different members to swap")

        swap_positions(self._state.state.rotation.members, first.id, second.id)
        self._events.record(
            "force_swap", admin_id, {"first": first.id, "second": second.id}
        )
        logger.info("Force swap: %s <-> %s by %s", first.id, second.id, admin_id)
        return first, second

    # ── Membership ──

    def add_member(self, admin_id: str, member_id: str, display_name: str) -> RotationMember:
        self._gate.require_admin(admin_id)
        member_id = member_id.strip().lstrip("@").lower()
        display_name = display_name.strip()
        if not member_id or not display_name:
            raise InvalidArgumentsError("Usage: addmember <id> <Display Name>")
        if any(m.id == member_id for m in self._state.state.rotation.members):
            raise InvalidArgumentsError(f"Member '{member_id}' is already in the rotation")

        member = RotationMember(id=member_id, display_name=display_name)
        self._state.state.rotation.members.append(member)
        self._events.record("member_added", admin_id, {"member_id": member_id})
        logger.info("Member added: %s (%s)", member_id, display_name)
        return member

    def remove_member(self, admin_id: str, member_ref: str) -> RotationMember:
        """
        Delete a member. The cursor keeps its position unless that position
        no longer exists, in which case it resets to 0. Owed turns and a
        pending skip for the member go with them; swap and punishment
        requests naming them turn stale and fail when decided.
        """
        self._gate.require_admin(admin_id)
        member = self._identity.require_member(member_ref)
        state = self._state.state
        rotation = state.rotation
        if len(rotation.members) == 1:
            raise InvalidArgumentsError("Cannot remove the last member of the rotation")

        rotation.members = [m for m in rotation.members if m.id != member.id]
        rotation.current_index = clamp_index(rotation.current_index, len(rotation.members))
        rotation.owed_turns.pop(member.id, None)
        state.skip_requests.pop(member.id, None)

        self._events.record("member_removed", admin_id, {"member_id": member.id})
        logger.info("Member removed: %s, cursor=%d", member.id, rotation.current_index)
        return member

    # ── Seed ──

    def seed(self, members: list[tuple[str, str]]) -> None:
        """Install the initial rotation when no snapshot exists."""
        rotation = self._state.state.rotation
        rotation.members = [
            RotationMember(id=member_id, display_name=name) for member_id, name in members
        ]
        rotation.current_index = 0
        rotation.owed_turns = {}
        logger.info("Seeded rotation with %d members", len(rotation.members))
