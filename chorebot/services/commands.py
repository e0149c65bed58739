# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Command parsing.
Turns inbound chat text or button tokens into a closed set of command
kinds. No state access here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

COMMAND_MARKER = "/"


class CommandKind(str, Enum):
    DONE = "done"
    STATUS = "status"
    SWAP = "swap"
    APPROVE_SWAP = "approve_swap"
    REJECT_SWAP = "reject_swap"
    SKIP = "skip"
    APPROVE_SKIP = "approve_skip"
    REJECT_SKIP = "reject_skip"
    PUNISH = "punish"
    APPROVE_PUNISHMENT = "approve_punishment"
    REJECT_PUNISHMENT = "reject_punishment"
    APPLY_PUNISHMENT = "applypunishment"
    PUNISHMENTS = "punishments"
    PUNISHMENT_STATS = "punishment_stats"
    ADD_ADMIN = "addadmin"
    REMOVE_ADMIN = "removeadmin"
    ADMINS = "admins"
    AUTHORIZE = "authorize"
    UNAUTHORIZE = "unauthorize"
    USERS = "users"
    LINK = "link"
    UNLINK = "unlink"
    ADD_MEMBER = "addmember"
    REMOVE_MEMBER = "removemember"
    FORCE_SWAP = "forceswap"
    PURGE = "purge"
    HELP = "help"
    DETAILED_HELP = "helphelp"
    UNKNOWN = "unknown"


MUTATING_KINDS: frozenset[CommandKind] = frozenset({
    CommandKind.DONE,
    CommandKind.SWAP,
    CommandKind.APPROVE_SWAP,
    CommandKind.REJECT_SWAP,
    CommandKind.SKIP,
    CommandKind.APPROVE_SKIP,
    CommandKind.REJECT_SKIP,
    CommandKind.PUNISH,
    CommandKind.APPROVE_PUNISHMENT,
    CommandKind.REJECT_PUNISHMENT,
    CommandKind.APPLY_PUNISHMENT,
    CommandKind.ADD_ADMIN,
    CommandKind.REMOVE_ADMIN,
    CommandKind.AUTHORIZE,
    CommandKind.UNAUTHORIZE,
    CommandKind.LINK,
    CommandKind.UNLINK,
    CommandKind.ADD_MEMBER,
    CommandKind.REMOVE_MEMBER,
    CommandKind.FORCE_SWAP,
    CommandKind.PURGE,
})

# Plain command words. approve/reject/punishments are refined by their first argument.
_WORDS: dict[str, CommandKind] = {
    "done": CommandKind.DONE,
    "status": CommandKind.STATUS,
    "queue": CommandKind.STATUS,
    "swap": CommandKind.SWAP,
    "approve": CommandKind.APPROVE_SWAP,
    "reject": CommandKind.REJECT_SWAP,
    "skip": CommandKind.SKIP,
    "punish": CommandKind.PUNISH,
    "punishments": CommandKind.PUNISHMENTS,
    "punishment": CommandKind.PUNISHMENTS,
    "applypunishment": CommandKind.APPLY_PUNISHMENT,
    "addadmin": CommandKind.ADD_ADMIN,
    "removeadmin": CommandKind.REMOVE_ADMIN,
    "admins": CommandKind.ADMINS,
    "authorize": CommandKind.AUTHORIZE,
    "unauthorize": CommandKind.UNAUTHORIZE,
    "users": CommandKind.USERS,
    "link": CommandKind.LINK,
    "unlink": CommandKind.UNLINK,
    "addmember": CommandKind.ADD_MEMBER,
    "removemember": CommandKind.REMOVE_MEMBER,
    "forceswap": CommandKind.FORCE_SWAP,
    "purge": CommandKind.PURGE,
    "help": CommandKind.HELP,
    "commands": CommandKind.HELP,
    "start": CommandKind.HELP,
    "helphelp": CommandKind.DETAILED_HELP,
}

_DECISIONS: dict[tuple[str, str], CommandKind] = {
    ("approve", "punishment"): CommandKind.APPROVE_PUNISHMENT,
    ("reject", "punishment"): CommandKind.REJECT_PUNISHMENT,
    ("approve", "skip"): CommandKind.APPROVE_SKIP,
    ("reject", "skip"): CommandKind.REJECT_SKIP,
}

# Button token prefixes carrying one argument after the prefix.
_BUTTON_PREFIXES: dict[str, CommandKind] = {
    "swap_approve_": CommandKind.APPROVE_SWAP,
    "swap_reject_": CommandKind.REJECT_SWAP,
    "punishment_approve_": CommandKind.APPROVE_PUNISHMENT,
    "punishment_reject_": CommandKind.REJECT_PUNISHMENT,
    "punishment_apply_": CommandKind.APPLY_PUNISHMENT,
    "skip_approve_": CommandKind.APPROVE_SKIP,
    "skip_reject_": CommandKind.REJECT_SKIP,
}

_BUTTON_WORDS: dict[str, CommandKind] = {
    "status": CommandKind.STATUS,
    "done": CommandKind.DONE,
    "help": CommandKind.HELP,
    "helphelp": CommandKind.DETAILED_HELP,
    "punishments": CommandKind.PUNISHMENTS,
    "punishment_stats": CommandKind.PUNISHMENT_STATS,
    "apply_punishment_menu": CommandKind.APPLY_PUNISHMENT,
}


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    args: tuple[str, ...] = ()
    raw: str = ""

    @property
    def mutating(self) -> bool:
        return self.kind in MUTATING_KINDS


@dataclass(frozen=True)
class Button:
    label: str
    token: str


@dataclass
class Reply:
    text: str
    buttons: list[Button] = field(default_factory=list)
    mutated: bool = False


def parse_command(text: str) -> Optional[Command]:
    """
    Parse chat text. Returns None for text that is not a command at all;
    marked (``/``) text that matches nothing parses as UNKNOWN.
    """
    stripped = (text or "").strip()
    if not stripped:
        return None

    marked = stripped.startswith(COMMAND_MARKER)
    body = stripped[len(COMMAND_MARKER):] if marked else stripped
    parts = body.split()
    if not parts:
        return Command(CommandKind.UNKNOWN, raw=stripped) if marked else None

    # Telegram-style "/done@SomeBot"
    word = parts[0].split("@", 1)[0].lower()
    args = tuple(parts[1:])

    kind = _WORDS.get(word)
    if kind is None:
        return Command(CommandKind.UNKNOWN, args, stripped) if marked else None

    if args and (word, args[0].lower()) in _DECISIONS:
        return Command(_DECISIONS[(word, args[0].lower())], args[1:], stripped)
    if kind == CommandKind.PUNISHMENTS and args and args[0].lower() == "stats":
        return Command(CommandKind.PUNISHMENT_STATS, args[1:], stripped)
    return Command(kind, args, stripped)


def parse_button(token: str) -> Command:
    """Parse a button token. Unknown tokens parse as UNKNOWN."""
    token = (token or "").strip()
    if token.lower() in _BUTTON_WORDS:
        return Command(_BUTTON_WORDS[token.lower()], raw=token)
    for prefix, kind in _BUTTON_PREFIXES.items():
        if token.startswith(prefix) and len(token) > len(prefix):
            return Command(kind, (token[len(prefix):],), token)
    return Command(CommandKind.UNKNOWN, raw=token)
