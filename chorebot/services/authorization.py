# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Authorization gate.
Decides who may operate the rotation (authorized callers) and who may
decide punishments and manage access (admins). Both sets are
capacity-limited. Checks raise before any state is touched.
"""

from chorebot.core.config import settings
from chorebot.core.errors import (
    CapacityExceededError,
    InvalidArgumentsError,
    NotAdminError,
    NotAuthorizedError,
)
from chorebot.core.logging import get_logger
from chorebot.repositories.event_repository import EventRepository
from chorebot.repositories.state_repository import StateRepository

logger = get_logger(__name__)


class AuthorizationGate:
    """Capacity-limited authorized-caller and admin sets."""

    def __init__(
        self,
        state_repo: StateRepository,
        event_repo: EventRepository,
        max_authorized: int | None = None,
        max_admins: int | None = None,
    ) -> None:
        self._state = state_repo
        self._events = event_repo
        self.max_authorized = (
            settings.MAX_AUTHORIZED_USERS if max_authorized is None else max_authorized
        )
        self.max_admins = settings.MAX_ADMINS if max_admins is None else max_admins

    # ── Queries ──

    def is_authorized(self, caller_id: str) -> bool:
        return caller_id in self._state.state.authorized_callers

    def is_admin(self, caller_id: str) -> bool:
        return caller_id in self._state.state.admins

    def authorized_callers(self) -> list[str]:
        return list(self._state.state.authorized_callers)

    def admins(self) -> list[str]:
        return list(self._state.state.admins)

    # ── Guards ──

    def require_authorized(self, caller_id: str) -> None:
        if not self.is_authorized(caller_id):
            logger.info("Rejected unauthorized caller: %s", caller_id)
            raise NotAuthorizedError()

    def require_admin(self, caller_id: str) -> None:
        if not self.is_admin(caller_id):
            logger.info("Rejected non-admin caller: %s", caller_id)
            raise NotAdminError()

    def require_admin_or_bootstrap(self, caller_id: str) -> None:
        """Admin check that lets anyone in while no admin exists yet."""
        if self._state.state.admins:
            self.require_admin(caller_id)

    # ── Authorized callers ──

    def add_authorized(self, caller_id: str) -> bool:
        """Returns False if already present. Raises CapacityExceededError."""
        caller_id = self._clean(caller_id)
        callers = self._state.state.authorized_callers
        if caller_id in callers:
            return False
        if len(callers) >= self.max_authorized:
            raise CapacityExceededError("authorized users", self.max_authorized)
        callers.append(caller_id)
        self._events.record("authorized_added", caller_id, {"count": len(callers)})
        logger.info("Authorized caller added: %s (%d/%d)",
                    caller_id, len(callers), self.max_authorized)
        return True

    def remove_authorized(self, caller_id: str) -> bool:
        """Idempotent: removing an absent id is a no-op returning False."""
        callers = self._state.state.authorized_callers
        if caller_id not in callers:
            return False
        callers.remove(caller_id)
        self._events.record("authorized_removed", caller_id, {"count": len(callers)})
        logger.info("Authorized caller removed: %s", caller_id)
        return True

    # ── Admins ──

    def add_admin(self, caller_id: str) -> bool:
        caller_id = self._clean(caller_id)
        admins = self._state.state.admins
        if caller_id in admins:
            return False
        if len(admins) >= self.max_admins:
            raise CapacityExceededError("admins", self.max_admins)
        admins.append(caller_id)
        self._events.record("admin_added", caller_id, {"count": len(admins)})
        logger.info("Admin added: %s (%d/%d)", caller_id, len(admins), self.max_admins)
        return True

    def remove_admin(self, caller_id: str) -> bool:
        admins = self._state.state.admins
        if caller_id not in admins:
            return False
        admins.remove(caller_id)
        self._events.record("admin_removed", caller_id, {"count": len(admins)})
        logger.info("Admin removed: %s", caller_id)
        return True

    @staticmethod
    def _clean(caller_id: str) -> str:
        caller_id = caller_id.strip()
        if not caller_id:
            raise InvalidArgumentsError("Caller id must not be empty")
        return caller_id
