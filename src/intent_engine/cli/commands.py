# src/intent_engine/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.errors import InvalidCommandError, MessagingError, MissingArgumentError
from ..core.state import AppState
from ..messaging.formatter import MessageFormatter
from ..messaging.parser import CommandType, parse_command

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Routes parsed commands (+ add, /done, /alltasks, ...) to handlers used by connectors."""

    def __init__(self) -> None:
        self._handlers: dict[CommandType, CommandHandler] = {}

    def register(self, command_type: CommandType, handler: CommandHandler) -> None:
        self._handlers[command_type] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        user_id: str | None = None,
        room_id: str | None = None,
    ) -> str | None:
        """
        Handle one inbound line.

        Returns a reply string, or None if the line is not a command at all.
        MessagingErrors become an error reply; anything else propagates.
        """
        cmd = parse_command(line)

        if cmd.type == CommandType.UNKNOWN and not cmd.raw.startswith("/"):
            return None

        try:
            handler = self._handlers.get(cmd.type)
            if handler is None:
                raise InvalidCommandError(cmd.raw)
            return handler(state, cmd.args)
        except MessagingError as e:
            logger.info(
                "Command %r rejected (%s) user_id=%s room_id=%s", cmd.raw, e.code, user_id, room_id
            )
            return MessageFormatter.error(str(e))


registry = CommandRegistry()


def cmd_add(state: AppState, args: list[str]) -> str:
    text = " ".join(args).strip()
    if not text:
        raise MissingArgumentError("task text")

    task = state.task_service.create_task(text)
    return MessageFormatter.task_added(task)


def cmd_alltasks(state: AppState, args: list[str]) -> str:
    return MessageFormatter.task_list(state.task_service.get_pending_tasks())


def cmd_done(state: AppState, args: list[str]) -> str:
    """
    /done <n>  -> complete the n-th (1-based) pending task
    """
    if not args:
        raise MissingArgumentError("task number (e.g., /done 1)")

    # Plain ASCII digits only: int() would also take "1_0" and "٢".
    raw_number = args[0]
    number = int(raw_number) if raw_number.isascii() and raw_number.isdigit() else 0
    if number < 1:
        raise MissingArgumentError("valid task number (e.g., /done 1)")

    task = state.task_service.complete_task_by_index(number - 1)
    return MessageFormatter.task_completed(task)


def cmd_help(state: AppState, args: list[str]) -> str:
    return MessageFormatter.help()


def cmd_start(state: AppState, args: list[str]) -> str:
    return MessageFormatter.welcome()


registry.register(CommandType.ADD, cmd_add)
registry.register(CommandType.ALLTASKS, cmd_alltasks)
registry.register(CommandType.DONE, cmd_done)
registry.register(CommandType.HELP, cmd_help)
registry.register(CommandType.START, cmd_start)
