"""
CLI Error Reporting
===================

Turns failures from loading a description, building a table or reading
the build settings into one message and an exit code. smtable and
smdisasm both report through handle_cli_exception().

Exit codes:
    0  success
    1  the description could not be loaded or built into a table
    2  bad arguments, unreadable input, or an unknown SM83_OPTABLE_* value
    3  unexpected internal error

Copyright (c) 2026 sm83-optable contributors
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn, Optional, Tuple

import click

from sm83_optable.config import ConfigError
from sm83_optable.errors import DescriptionLoadError, IncompleteOpcodeSpace, OpcodeTableError


class ExitCode(IntEnum):
    """Exit codes shared by smtable and smdisasm."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Unloadable description or table build failure
    INVALID_ARGS = 2     # Bad arguments, missing files, bad environment
    INTERNAL_ERROR = 3   # Unexpected internal error


INCOMPLETE_HINT = "rerun with --allow-incomplete or SM83_OPTABLE_COMPLETENESS=warn"


def describe_error(error: Exception, error_type: Optional[str] = None) -> Tuple[ExitCode, str]:
    """
    Choose the exit code and message for a failed command.

    Args:
        error: The exception that stopped the command
        error_type: Prefix for table errors (e.g., "Build" gives "Build error: ")

    Returns:
        (exit code, message) tuple
    """
    if isinstance(error, DescriptionLoadError):
        return ExitCode.BUILD_ERROR, f"Cannot load description: {error}"

    if isinstance(error, OpcodeTableError):
        prefix = f"{error_type} error: " if error_type else "Error: "
        message = f"{prefix}{error}"
        if isinstance(error, IncompleteOpcodeSpace):
            message += f"\n{INCOMPLETE_HINT}"
        return ExitCode.BUILD_ERROR, message

    if isinstance(error, ConfigError):
        return ExitCode.INVALID_ARGS, f"Configuration error: {error}"

    if isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        return ExitCode.INVALID_ARGS, f"Error: {error}"

    return ExitCode.INTERNAL_ERROR, f"Internal error: {error}"


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: Optional[str] = None
) -> NoReturn:
    """
    Report a failed command on stderr and exit.

    Internal errors also print their traceback when verbose is set.

    Raises:
        SystemExit: Always, with the code from describe_error()
    """
    code, message = describe_error(error, error_type)
    click.echo(message, err=True)
    if verbose and code is ExitCode.INTERNAL_ERROR:
        traceback.print_exc()
    sys.exit(code)
