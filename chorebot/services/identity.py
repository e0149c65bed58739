# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Identity resolution.
Maps a caller id (chat handle, phone number, member id) or a free-text
reference (``@adele``, ``Adele Aronov``, ``adele``) onto a rotation member.
This is the only place where caller-to-member resolution happens.
"""

from typing import Optional

from chorebot.core.errors import InvalidArgumentsError, MemberNotFoundError
from chorebot.core.logging import get_logger
from chorebot.models.domain import RotationMember
from chorebot.repositories.event_repository import EventRepository
from chorebot.repositories.state_repository import StateRepository

logger = get_logger(__name__)


def normalize_ref(ref: str) -> str:
    """Lower-case, trimmed, leading ``@`` stripped."""
    return ref.strip().lstrip("@").strip().lower()


class IdentityResolver:
    """Resolves callers and references to rotation members."""

    def __init__(self, state_repo: StateRepository, event_repo: EventRepository) -> None:
        self._state = state_repo
        self._events = event_repo

    # ── Resolution ──

    def member_id_for(self, caller_id: str) -> Optional[str]:
        """
        The member id a caller acts as, whether or not that member is still
        in the rotation. Aliases win over a literal member id.
        """
        state = self._state.state
        if caller_id in state.aliases:
            return state.aliases[caller_id]
        key = normalize_ref(caller_id)
        for alias, member_id in state.aliases.items():
            if normalize_ref(alias) == key:
                return member_id
        for member in state.rotation.members:
            if member.id.lower() == key:
                return member.id
        return None

    def resolve_member(self, ref: str) -> Optional[RotationMember]:
        """Find the current rotation member a caller id or reference points at."""
        members = self._state.state.rotation.members
        member_id = self.member_id_for(ref)
        if member_id is not None:
            for member in members:
                if member.id == member_id:
                    return member
            return None

        key = normalize_ref(ref)
        if not key:
            return None
        for member in members:
            if member.display_name.lower() == key:
                return member
        first_name_matches = [
            m for m in members if m.display_name.split()[0].lower() == key
        ]
        if len(first_name_matches) == 1:
            return first_name_matches[0]
        return None

    def resolve(self, caller_id: str) -> Optional[str]:
        """Display name of the member a caller resolves to, if any."""
        member = self.resolve_member(caller_id)
        return member.display_name if member else None

    def require_member(self, ref: str) -> RotationMember:
        member = self.resolve_member(ref)
        if member is None:
            raise MemberNotFoundError(f"'{ref}' is not in the rotation")
        return member

    # ── Alias management ──

    def link(self, caller_id: str, member_ref: str) -> RotationMember:
        """Let ``caller_id`` act as the given member."""
        caller_id = caller_id.strip()
        if not caller_id:
            raise InvalidArgumentsError("Caller id must not be empty")
        member = self.require_member(member_ref)
        self._state.state.aliases[caller_id] = member.id
        self._events.record(
            "alias_linked", caller_id, {"member_id": member.id}
        )
        logger.info("Alias linked: caller=%s, member=%s", caller_id, member.id)
        return member

    def unlink(self, caller_id: str) -> bool:
        """Drop an alias. Returns False if there was none."""
        removed = self._state.state.aliases.pop(caller_id.strip(), None)
        if removed is None:
            return False
        self._events.record("alias_unlinked", caller_id, {"member_id": removed})
        logger.info("Alias unlinked: caller=%s", caller_id)
        return True
