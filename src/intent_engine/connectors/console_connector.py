# src/intent_engine/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

NOT_A_COMMAND_HINT = "Add a task with `+ your task`, or type /help."


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    if sys.stdout.isatty():
        sys.stdout.write("\033[1A\033[2K\r")
        sys.stdout.write(line + "\n")
        sys.stdout.flush()
    else:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_console_line(state: AppState, line: str) -> str:
    """One REPL turn: always returns something to print."""
    try:
        with state.lock:
            reply = command_registry.handle(state, line, user_id="console")
    except Exception:
        logger.exception("Command handler crashed.")
        return "Internal error while handling a command."

    return reply if reply is not None else NOT_A_COMMAND_HINT


def run_console_loop(state: AppState, read_line: Callable[[str], str] = input) -> None:
    logger.info("Console connector started (tasks=%s).", state.task_store.path)
    app_name = str(getattr(state.settings, "app_name", "intent"))
    _print_ts(f"[{app_name}] Type + <task>, /alltasks, /done <n>, /help. Use /exit to quit.\n")

    while True:
        try:
            user_input = read_line(">>> You: ").strip()
            if read_line is input:
                _rewrite_prev_line(f"[{_ts_local()}] >>> You: {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        _print_ts(handle_console_line(state, user_input))

    logger.info("Console connector finished.")
