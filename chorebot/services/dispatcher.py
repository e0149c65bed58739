# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Command dispatcher.

Routes each parsed command to exactly one handler, runs it under the engine
lock and renders the result. Every ``RotationError`` is caught here and
turned into a short reply; nothing user-caused escapes this boundary.
"""

from typing import Callable, Optional

from chorebot.core.config import settings
from chorebot.core.errors import InvalidArgumentsError, RotationError
from chorebot.core.logging import get_logger
from chorebot.metrics.prometheus import COMMANDS_HANDLED
from chorebot.repositories.state_repository import StateRepository
from chorebot.services import formatting
from chorebot.services.authorization import AuthorizationGate
from chorebot.services.commands import (
    Button,
    Command,
    CommandKind,
    Reply,
    parse_button,
    parse_command,
)
from chorebot.services.identity import IdentityResolver
from chorebot.services.punishment_service import PunishmentProtocol
from chorebot.services.rotation_service import RotationTracker
from chorebot.services.skip_service import SkipProtocol
from chorebot.services.swap_service import SwapProtocol

logger = get_logger(__name__)

Handler = Callable[[Command, str], Reply]


def _require_args(command: Command, count: int, usage: str) -> None:
    if len(command.args) < count:
        raise InvalidArgumentsError(f"Usage: {usage}")


def _request_id(raw: str) -> int:
    try:
        request_id = int(raw.lstrip("#"))
    except ValueError:
        raise InvalidArgumentsError("Invalid request ID") from None
    if request_id < 1:
        raise InvalidArgumentsError("Invalid request ID")
    return request_id


def _limit(raw: str) -> int:
    try:
        limit = int(raw)
    except ValueError:
        raise InvalidArgumentsError("Usage: punishments [limit]") from None
    if limit < 1:
        raise InvalidArgumentsError("Limit must be a positive number")
    return limit


def _caller_ref(raw: str) -> str:
    """Caller id from a mention: ``@alice`` -> ``alice``."""
    ref = raw.strip().lstrip("@")
    if not ref:
        raise InvalidArgumentsError("Caller id must not be empty")
    return ref


def _turns(raw: str) -> int:
    if not raw.startswith("+"):
        raise InvalidArgumentsError("Turns must be specified as +number (e.g. +3)")
    try:
        return int(raw[1:])
    except ValueError:
        raise InvalidArgumentsError("Invalid number of turns") from None


class CommandDispatcher:
    """Closed routing table from CommandKind to handler."""

    def __init__(
        self,
        state_repo: StateRepository,
        gate: AuthorizationGate,
        identity: IdentityResolver,
        rotation: RotationTracker,
        swaps: SwapProtocol,
        skips: SkipProtocol,
        punishments: PunishmentProtocol,
    ) -> None:
        self._state = state_repo
        self._gate = gate
        self._identity = identity
        self._rotation = rotation
        self._swaps = swaps
        self._skips = skips
        self._punishments = punishments

        self._handlers: dict[CommandKind, Handler] = {
            CommandKind.DONE: self._done,
            CommandKind.STATUS: self._status,
            CommandKind.SWAP: self._swap,
            CommandKind.APPROVE_SWAP: self._approve_swap,
            CommandKind.REJECT_SWAP: self._reject_swap,
            CommandKind.SKIP: self._skip,
            CommandKind.APPROVE_SKIP: self._approve_skip,
            CommandKind.REJECT_SKIP: self._reject_skip,
            CommandKind.PUNISH: self._punish,
            CommandKind.APPROVE_PUNISHMENT: self._approve_punishment,
            CommandKind.REJECT_PUNISHMENT: self._reject_punishment,
            CommandKind.APPLY_PUNISHMENT: self._apply_punishment,
            CommandKind.PUNISHMENTS: self._punishment_history,
            CommandKind.PUNISHMENT_STATS: self._punishment_stats,
            CommandKind.ADD_ADMIN: self._add_admin,
            CommandKind.REMOVE_ADMIN: self._remove_admin,
            CommandKind.ADMINS: self._admins,
            CommandKind.AUTHORIZE: self._authorize,
            CommandKind.UNAUTHORIZE: self._unauthorize,
            CommandKind.USERS: self._users,
            CommandKind.LINK: self._link,
            CommandKind.UNLINK: self._unlink,
            CommandKind.ADD_MEMBER: self._add_member,
            CommandKind.REMOVE_MEMBER: self._remove_member,
            CommandKind.FORCE_SWAP: self._force_swap,
            CommandKind.PURGE: self._purge,
            CommandKind.HELP: self._help,
            CommandKind.DETAILED_HELP: self._detailed_help,
            CommandKind.UNKNOWN: self._unknown,
        }
        missing = set(CommandKind) - set(self._handlers)
        if missing:
            raise RuntimeError(
                f"No handler for command kinds: {sorted(k.value for k in missing)}"
            )

    # ── Entry points ──

    def handle_message(self, caller_id: str, display_name: str, text: str) -> Optional[Reply]:
        """None means the text was not addressed to the bot."""
        command = parse_command(text)
        if command is None:
            return None
        return self.execute(command, caller_id, display_name)

    def handle_button(self, caller_id: str, display_name: str, token: str) -> Reply:
        return self.execute(parse_button(token), caller_id, display_name)

    def execute(self, command: Command, caller_id: str, display_name: str = "") -> Reply:
        log_extra = {"caller_id": caller_id, "command": command.kind.value}
        with self._state.lock:
            try:
                reply = self._handlers[command.kind](command, caller_id)
            except RotationError as exc:
                COMMANDS_HANDLED.labels(command=command.kind.value, outcome=exc.code).inc()
                logger.info("Command refused: %s (%s)", exc.code, display_name or caller_id,
                            extra=log_extra)
                return Reply(text=f"❌ {exc.message}", mutated=exc.state_changed)

        reply.mutated = command.mutating
        COMMANDS_HANDLED.labels(command=command.kind.value, outcome="ok").inc()
        logger.info("Command handled (%s)", display_name or caller_id, extra=log_extra)
        return reply

    # ── Rotation ──

    def _done(self, command: Command, caller_id: str) -> Reply:
        outcome = self._rotation.complete_turn(caller_id)
        return Reply(formatting.render_turn_outcome(outcome))

    def _status(self, command: Command, caller_id: str) -> Reply:
        return Reply(
            formatting.render_status(self._state.state, self._gate.max_authorized),
            buttons=[Button("✅ Done", "done"), Button("🔄 Status", "status")],
        )

    def _add_member(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 2, "addmember <id> <Display Name>")
        member = self._rotation.add_member(
            caller_id, command.args[0], " ".join(command.args[1:])
        )
        return Reply(f"✅ {member.display_name} joined the rotation at the end.")

    def _remove_member(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "removemember <member>")
        member = self._rotation.remove_member(caller_id, " ".join(command.args))
        current = self._rotation.current_turn()
        text = f"✅ {member.display_name} removed from the rotation."
        if current is not None:
            text += f"\n\n🔄 Current turn: {current.display_name}"
        return Reply(text)

    def _force_swap(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 2, "forceswap <member> <member>")
        first, second = self._rotation.force_swap(caller_id, command.args[0], command.args[1])
        return Reply(formatting.render_force_swap(first, second, self._state.state))

    # ── Swaps ──

    def _swap(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "swap @username")
        request = self._swaps.propose(caller_id, command.args[0])
        return Reply(
            formatting.render_swap_proposed(request),
            buttons=[
                Button("✅ Approve", f"swap_approve_{request.id}"),
                Button("❌ Reject", f"swap_reject_{request.id}"),
            ],
        )

    def _approve_swap(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "approve <request_id>")
        request = self._swaps.approve(_request_id(command.args[0]), caller_id)
        return Reply(formatting.render_swap_approved(request))

    def _reject_swap(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "reject <request_id>")
        request = self._swaps.reject(_request_id(command.args[0]), caller_id)
        return Reply(formatting.render_swap_rejected(request))

    # ── Skips ──

    def _skip(self, command: Command, caller_id: str) -> Reply:
        request = self._skips.request(caller_id, " ".join(command.args))
        return Reply(
            formatting.render_skip_requested(request),
            buttons=[
                Button("✅ Approve", f"skip_approve_{request.member.id}"),
                Button("❌ Reject", f"skip_reject_{request.member.id}"),
            ],
        )

    def _approve_skip(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "approve skip <member>")
        request, next_member = self._skips.approve(" ".join(command.args), caller_id)
        return Reply(formatting.render_skip_approved(request, next_member))

    def _reject_skip(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "reject skip <member>")
        request = self._skips.reject(" ".join(command.args), caller_id)
        return Reply(formatting.render_skip_rejected(request))

    # ── Punishments ──

    def _punish(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 2, "punish @username +3 reason")
        member = self._identity.require_member(command.args[0])
        turns = _turns(command.args[1])
        request = self._punishments.submit(
            caller_id, member.id, member.display_name, turns, " ".join(command.args[2:])
        )
        return Reply(
            formatting.render_punishment_submitted(request),
            buttons=[
                Button("✅ Approve", f"punishment_approve_{request.id}"),
                Button("❌ Reject", f"punishment_reject_{request.id}"),
            ],
        )

    def _approve_punishment(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "approve punishment <request_id>")
        request, owed_total = self._punishments.approve(
            _request_id(command.args[0]), caller_id
        )
        return Reply(formatting.render_punishment_decided(request, owed_total))

    def _reject_punishment(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "reject punishment <request_id>")
        request = self._punishments.reject(_request_id(command.args[0]), caller_id)
        return Reply(formatting.render_punishment_decided(request))

    def _apply_punishment(self, command: Command, caller_id: str) -> Reply:
        self._gate.require_admin(caller_id)
        if not command.args:
            default_turns = settings.PUNISHMENT_DEFAULT_TURNS
            return Reply(
                f"⚡ **Apply Punishment**\n\nChoose a member (+{default_turns} turns):",
                buttons=[
                    Button(member.display_name, f"punishment_apply_{member.id}")
                    for member in self._rotation.members()
                ],
            )
        member = self._identity.require_member(command.args[0])
        turns = settings.PUNISHMENT_DEFAULT_TURNS
        reason_words = command.args[1:]
        if reason_words and reason_words[0].startswith("+"):
            turns = _turns(reason_words[0])
            reason_words = reason_words[1:]
        request, owed_total = self._punishments.apply(
            caller_id,
            member.id,
            member.display_name,
            turns,
            " ".join(reason_words) or "Applied by admin",
        )
        return Reply(formatting.render_punishment_applied(request, owed_total))

    def _punishment_history(self, command: Command, caller_id: str) -> Reply:
        limit = None
        if command.args:
            limit = _limit(command.args[0])
        return Reply(formatting.render_punishment_history(self._punishments.history(limit)))

    def _punishment_stats(self, command: Command, caller_id: str) -> Reply:
        return Reply(formatting.render_punishment_stats(self._punishments.stats()))

    def _purge(self, command: Command, caller_id: str) -> Reply:
        self._gate.require_admin(caller_id)
        days = None
        if command.args:
            try:
                days = int(command.args[0])
            except ValueError:
                raise InvalidArgumentsError("Usage: purge [days]") from None
        removed = self._punishments.purge_old(days)
        return Reply(f"🧹 Purged {removed} decided punishment request(s).")

    # ── Access ──

    def _add_admin(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "addadmin @username")
        self._gate.require_admin_or_bootstrap(caller_id)
        target = _caller_ref(command.args[0])
        added = self._gate.add_admin(target)
        return Reply(f"✅ {target} added as admin!" if added else f"ℹ️ {target} is already an admin.")

    def _remove_admin(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "removeadmin @username")
        self._gate.require_admin(caller_id)
        target = _caller_ref(command.args[0])
        self._gate.remove_admin(target)
        return Reply(f"✅ {target} removed from admins!")

    def _admins(self, command: Command, caller_id: str) -> Reply:
        return Reply(formatting.render_admins(self._gate.admins()))

    def _authorize(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "authorize @username [member]")
        self._gate.require_admin(caller_id)
        target = _caller_ref(command.args[0])
        member = None
        if len(command.args) > 1:
            member = self._identity.require_member(" ".join(command.args[1:]))
        self._gate.add_authorized(target)
        text = f"✅ {target} authorized to use rotation commands!"
        if member is not None:
            self._identity.link(target, member.id)
            text += f"\n🔗 {target} acts as {member.display_name}."
        return Reply(text)

    def _unauthorize(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "unauthorize @username")
        self._gate.require_admin(caller_id)
        target = _caller_ref(command.args[0])
        self._gate.remove_authorized(target)
        return Reply(f"✅ {target} unauthorized from rotation commands!")

    def _users(self, command: Command, caller_id: str) -> Reply:
        state = self._state.state
        return Reply(
            formatting.render_users(
                self._gate.authorized_callers(), self._gate.max_authorized, state.aliases, state
            )
        )

    def _link(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 2, "link <caller> <member>")
        self._gate.require_admin(caller_id)
        target = _caller_ref(command.args[0])
        member = self._identity.link(target, " ".join(command.args[1:]))
        return Reply(f"🔗 {target} now acts as {member.display_name}.")

    def _unlink(self, command: Command, caller_id: str) -> Reply:
        _require_args(command, 1, "unlink <caller>")
        self._gate.require_admin(caller_id)
        target = _caller_ref(command.args[0])
        if self._identity.unlink(target):
            return Reply(f"✅ {target} unlinked.")
        return Reply(f"ℹ️ {target} was not linked.")

    # ── Help ──

    def _help(self, command: Command, caller_id: str) -> Reply:
        return Reply(formatting.HELP_TEXT)

    def _detailed_help(self, command: Command, caller_id: str) -> Reply:
        return Reply(formatting.DETAILED_HELP_TEXT)

    def _unknown(self, command: Command, caller_id: str) -> Reply:
        return Reply(formatting.UNKNOWN_TEXT)
