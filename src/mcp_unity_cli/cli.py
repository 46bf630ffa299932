"""MCP Unity CLI.

Sends one command to the Unity editor and prints the result as JSON.

Usage:
    unity-cli execute_menu_item --menuPath "Assets/Refresh"
    unity-cli get_menu_items | grep Tools/
    unity-cli get_logs --limit 100
    unity-cli get_warn_error_logs --limit 100
    unity-cli recompile_scripts --returnWithLogs true --logsLimit 50
    unity-cli get_logs --timeout 2000          # Override the deadline (ms)
    unity-cli -v get_logs                      # Debug log to stderr
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

import click

from .config import resolve_connection
from .correlator import correlate
from .outcomes import Outcome, Success
from .protocol.commands import CommandType, Scalar, coerce_value, filter_warn_error_logs

logger = logging.getLogger(__name__)

TIMEOUT_OPTION = "timeout"


def parse_options(tokens: Sequence[str]) -> tuple[dict[str, Scalar], int | float | None]:
    """Split ``--name value`` pairs into request params and the timeout override.

    Raises:
        click.UsageError: On a token that is not ``--name`` or a name without a value
        click.BadParameter: If --timeout is not a positive number
    """
    params: dict[str, Scalar] = {}
    timeout_ms: int | float | None = None

    for i in range(0, len(tokens), 2):
        key = tokens[i]
        name = key[2:]
        if not key.startswith("--") or not name or i + 1 >= len(tokens):
            raise click.UsageError(f"Invalid argument: {key}")

        value = tokens[i + 1]
        if name == TIMEOUT_OPTION:
            timeout_ms = _parse_timeout(value)
            continue
        params[name] = coerce_value(value)

    return params, timeout_ms


def _parse_timeout(value: str) -> int | float:
    timeout = coerce_value(value)
    if isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0:
        raise click.BadParameter(
            f"expected a positive number of milliseconds, got {value!r}",
            param_hint="'--timeout'",
        )
    if isinstance(timeout, float) and timeout.is_integer():
        return int(timeout)
    return timeout


def _configure_logging(verbose: bool) -> None:
    """Log to stderr so stdout carries only the JSON result."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _emit(payload: Any, pretty: bool) -> None:
    click.echo(json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False))


def run_command(
    command: CommandType,
    params: dict[str, Scalar],
    timeout_ms: int | float | None = None,
) -> Outcome:
    """Resolve the endpoint, send the command, and post-process the outcome."""
    info = resolve_connection()
    deadline = timeout_ms if timeout_ms is not None else command.default_timeout_ms
    logger.debug(
        f"{command.value} -> {command.method} on {info.host}:{info.port} (timeout {deadline}ms)"
    )

    outcome = asyncio.run(correlate(info.host, info.port, command.method, params, deadline))

    if command is CommandType.GET_WARN_ERROR_LOGS and isinstance(outcome, Success):
        outcome = Success(filter_warn_error_logs(outcome.result))
    return outcome


@click.command(
    context_settings={
        "allow_interspersed_args": False,
        "help_option_names": ["-h", "--help"],
    }
)
@click.argument("command", type=click.Choice([c.value for c in CommandType]))
@click.argument("options", nargs=-1, type=click.UNPROCESSED)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
def main(command: str, options: tuple[str, ...], verbose: bool) -> None:
    """Send COMMAND to the Unity editor and print the result as JSON.

    Options are passed to the editor as --name value pairs, except
    --timeout <ms> which overrides the deadline (default 10000,
    60000 for recompile_scripts). Everything after COMMAND is passed
    through, so -v and --help must come before it.

    Examples:

        unity-cli execute_menu_item --menuPath "Assets/Refresh"

        unity-cli get_logs --limit 100 --offset 0

        unity-cli recompile_scripts --returnWithLogs true --logsLimit 50
    """
    _configure_logging(verbose)

    params, timeout_ms = parse_options(options)

    try:
        outcome = run_command(CommandType(command), params, timeout_ms)
    except KeyboardInterrupt:
        click.echo("\nInterrupted", err=True)
        sys.exit(130)

    if outcome.ok:
        _emit(outcome.to_payload(), pretty=True)
        return

    _emit(outcome.to_payload(), pretty=False)
    sys.exit(1)


if __name__ == "__main__":
    main()
