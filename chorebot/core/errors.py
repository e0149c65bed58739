# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Error taxonomy for the rotation engine.

Every user-facing failure is a ``RotationError`` subclass. They are raised by
the service layer before any state is touched and rendered as a short reply
by the command dispatcher; none of them is fatal to the process. The one
exception is a stale request being dropped, flagged with ``state_changed``.
"""

from typing import Any


class RotationError(Exception):
    """Base exception for all rotation engine errors."""

    code: str = "RotationError"
    default_message: str = "Something went wrong"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        state_changed: bool = False,
    ):
        self.message = message or self.default_message
        self.details = details or {}
        # Set when the refusal still dropped a stale request.
        self.state_changed = state_changed
        super().__init__(self.message)


# ── Authorization ──


class NotAuthorizedError(RotationError):
    code = "NotAuthorized"
    default_message = "You are not authorized to use rotation commands"


class NotAdminError(RotationError):
    code = "NotAdmin"
    default_message = "Only admins can do that"


class CapacityExceededError(RotationError):
    code = "CapacityExceeded"
    default_message = "Capacity exceeded"

    def __init__(self, kind: str, limit: int):
        super().__init__(
            f"Maximum of {limit} {kind} allowed",
            details={"kind": kind, "limit": limit},
        )
        self.kind = kind
        self.limit = limit


# ── Rotation ──


class MemberNotFoundError(RotationError):
    code = "MemberNotFound"
    default_message = "Member not found in the rotation"


class SelfSwapError(RotationError):
    code = "SelfSwap"
    default_message = "You cannot swap with yourself"


class NoCurrentTurnError(RotationError):
    code = "NoCurrentTurn"
    default_message = "The rotation is empty, nobody has a turn"


class NotYourTurnError(RotationError):
    code = "NotYourTurn"
    default_message = "It's not your turn"


# ── Requests ──


class RequestNotFoundError(RotationError):
    code = "RequestNotFound"
    default_message = "Request not found"


class NotTargetUserError(RotationError):
    code = "NotTargetUser"
    default_message = "Only the invited member can answer this swap request"


class AlreadyDecidedError(RotationError):
    code = "AlreadyDecided"
    default_message = "This request has already been processed"


class InvalidTurnCountError(RotationError):
    code = "InvalidTurnCount"
    default_message = "Invalid number of turns"


class InvalidArgumentsError(RotationError):
    code = "InvalidArguments"
    default_message = "Invalid command arguments"


# ── Persistence ──


class PersistenceError(RotationError):
    """Snapshot I/O failure. Operator-facing, never shown to chat users."""

    code = "PersistenceError"
    default_message = "Snapshot storage failed"
