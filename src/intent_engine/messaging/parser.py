# src/intent_engine/messaging/parser.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum


class CommandType(StrEnum):
    ADD = "add"
    ALLTASKS = "alltasks"
    DONE = "done"
    HELP = "help"
    START = "start"
    UNKNOWN = "unknown"


_SLASH_COMMANDS: dict[str, CommandType] = {
    "done": CommandType.DONE,
    "alltasks": CommandType.ALLTASKS,
    "help": CommandType.HELP,
    "start": CommandType.START,
}


@dataclass(frozen=True, slots=True)
class ParsedCommand:
    type: CommandType
    args: list[str] = field(default_factory=list)
    raw: str = ""


def parse_command(text: str) -> ParsedCommand:
    """
    Classify one inbound line. Pure, total, no validation of arguments.

    "+ walk 20 min" -> add ["walk 20 min"]
    "/done 2"       -> done ["2"]
    "/bogus x"      -> unknown []
    anything else   -> unknown []
    """
    raw = text.strip()

    if raw.startswith("+"):
        return ParsedCommand(type=CommandType.ADD, args=[raw[1:].strip()], raw=raw)

    if raw.startswith("/"):
        # The command word must follow "/" directly: "/ done" is not /done.
        parts = re.split(r"\s+", raw[1:])
        cmd_type = _SLASH_COMMANDS.get(parts[0])
        if cmd_type is None:
            return ParsedCommand(type=CommandType.UNKNOWN, args=[], raw=raw)
        return ParsedCommand(type=cmd_type, args=parts[1:], raw=raw)

    return ParsedCommand(type=CommandType.UNKNOWN, args=[], raw=raw)
