"""
Chat command parsing.

Turns raw message text into a typed Command before any business logic runs.
Anything that is not a slash command is a search.
"""
import re
from dataclasses import dataclass
from typing import Optional

from app.core.exceptions import CommandError


class CommandKind:
    START = "start"
    HELP = "help"
    ADMIN = "admin"
    SET_NAME = "setname"
    SET_PHONE = "setphone"
    SET_ADDRESS = "setaddress"
    UPLOAD = "upload"
    CLEAR = "ahad"
    CLEAR_CONFIRM = "ahad_confirm"
    CANCEL = "cancel"
    SEARCH = "search"


KNOWN_COMMANDS = {
    CommandKind.START,
    CommandKind.HELP,
    CommandKind.ADMIN,
    CommandKind.SET_NAME,
    CommandKind.SET_PHONE,
    CommandKind.SET_ADDRESS,
    CommandKind.UPLOAD,
    CommandKind.CLEAR,
    CommandKind.CLEAR_CONFIRM,
    CommandKind.CANCEL,
}

# Settings key written by each /set* command
SETTING_KEYS = {
    CommandKind.SET_NAME: "name",
    CommandKind.SET_PHONE: "phone",
    CommandKind.SET_ADDRESS: "address",
}

# "/setname@PharmacyBot 1 Markaziy" -> ("setname", "1 Markaziy")
_COMMAND_RE = re.compile(r"^/(?P<name>[A-Za-z_]+)(?:@\w+)?(?:\s+(?P<args>.*))?$", re.DOTALL)
_BRANCH_PREFIX_RE = re.compile(r"^(?P<branch>\d+)(?:\s+(?P<value>.*))?$", re.DOTALL)


@dataclass(frozen=True)
class Command:
    kind: str
    args: str = ""


@dataclass(frozen=True)
class SettingArgs:
    branch: Optional[int]
    value: str


@dataclass(frozen=True)
class BranchTarget:
    branch: Optional[int]  # None means every branch
    all_branches: bool = False


def parse_command(text: str) -> Optional[Command]:
    """
    Parse message text. Returns None for blank text.

    Unknown slash commands are searched as typed, like any other text.
    """
    text = (text or "").strip()
    if not text:
        return None

    match = _COMMAND_RE.match(text)
    if match and match.group("name").lower() in KNOWN_COMMANDS:
        return Command(kind=match.group("name").lower(), args=(match.group("args") or "").strip())
    return Command(kind=CommandKind.SEARCH, args=text)


def parse_setting_args(args: str, require_branch: bool) -> SettingArgs:
    """
    Split "/setphone 2 +998..." style arguments.

    Super admins must lead with a branch number; branch admins pass only the
    value, which may itself start with digits (a phone number).
    """
    args = (args or "").strip()
    if not require_branch:
        if not args:
            raise CommandError("❌ Noto'g'ri format")
        return SettingArgs(branch=None, value=args)

    match = _BRANCH_PREFIX_RE.match(args)
    if not match or not (match.group("value") or "").strip():
        raise CommandError("❌ Noto'g'ri format")
    return SettingArgs(branch=int(match.group("branch")), value=match.group("value").strip())


def parse_branch_target(args: str, allow_all: bool = False) -> BranchTarget:
    """Parse the single "N" (or "all") argument of /upload and /ahad."""
    parts = (args or "").split()
    if len(parts) != 1:
        raise CommandError("❌ Noto'g'ri format")
    token = parts[0].lower()
    if allow_all and token == "all":
        return BranchTarget(branch=None, all_branches=True)
    if not token.isdigit():
        raise CommandError("❌ Noto'g'ri format")
    return BranchTarget(branch=int(token))
