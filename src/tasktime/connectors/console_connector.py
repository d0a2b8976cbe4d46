# src/tasktime/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime

from ..cli.commands import describe_command_error
from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except OSError:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def run_console_loop(state: AppState, runner: asyncio.Runner) -> None:
    """
    Blocking REPL on the main thread.

    input() stays on the main thread so Ctrl+C interrupts it directly; each command
    runs to completion on the shared event loop before the next line is read.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands, /tasks to list tasks. Use /exit to quit.\n")

    while True:
        try:
            user_input = input(">>> ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
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

        if not user_input.startswith("/"):
            _print_ts("Commands start with '/'. Use /help to list available commands.")
            continue

        try:
            cmd_response = runner.run(command_registry.handle(state, user_input))
        except KeyboardInterrupt:
            logger.info("Command interrupted.")
            print()
            continue
        except Exception as e:
            logger.exception("Command handler crashed.")
            cmd_response = describe_command_error(e)

        if cmd_response is not None:
            _print_ts(cmd_response)

    logger.info("Console connector finished.")
