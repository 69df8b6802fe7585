"""
CLI Error Reporting
===================

Maps exceptions raised while running a script to a message and an exit
code, so every avrrun failure is reported the same way.

    AvrError subclasses        exit 1  (message printed as-is or prefixed)
    bad arguments, missing     exit 2
    files, unknown device
    anything else              exit 3  (traceback with --verbose)

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from avr_core.errors import AvrError, CoreError, ScriptError


class ExitCode(IntEnum):
    """Process exit codes for avrrun."""
    SUCCESS = 0
    EXECUTION_ERROR = 1  # Script, instruction or snapshot error
    INVALID_ARGS = 2     # Bad options, missing files, unknown device
    INTERNAL_ERROR = 3   # Bug


def describe_error(error: Exception, error_type: str | None = None) -> tuple[str, ExitCode]:
    """
    Build the user-facing message and exit code for an exception.

    CoreError and ScriptError messages already start with "error:" (or a
    file location), so they are shown unchanged.

    Args:
        error: The exception that was raised
        error_type: Optional prefix for other errors (e.g., "Snapshot")
    """
    if isinstance(error, (CoreError, ScriptError)):
        return str(error), ExitCode.EXECUTION_ERROR

    if isinstance(error, AvrError):
        prefix = f"{error_type} error: " if error_type else "Error: "
        return f"{prefix}{error}", ExitCode.EXECUTION_ERROR

    if isinstance(error, (click.BadParameter, ValueError, FileNotFoundError, PermissionError)):
        return f"Error: {error}", ExitCode.INVALID_ARGS

    return f"Internal error: {error}", ExitCode.INTERNAL_ERROR


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report an exception on stderr and exit.

    Args:
        error: The exception that was raised
        verbose: If True, print the traceback for internal errors
        error_type: Optional prefix for the message

    Raises:
        SystemExit: Always
    """
    message, code = describe_error(error, error_type)
    click.echo(message, err=True)
    if code == ExitCode.INTERNAL_ERROR and verbose:
        traceback.print_exc()
    sys.exit(code)
