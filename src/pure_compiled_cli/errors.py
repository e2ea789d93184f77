"""CLI error handling for pure-compiled-cli.

Wraps pure-compiled exceptions into user-friendly messages with exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from pydantic import ValidationError as PydanticValidationError

from pure_compiled.errors import PipelineError, PureCompiledError
from pure_compiled_cli.output import error

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # A pipeline stage failed
EXIT_SYSTEM_ERROR = 2  # Invalid configuration or an I/O failure


class CLIError(click.ClickException):
    """CLI exception carrying an exit code.

    Attributes:
        message: User-facing error message.
        exit_code: Process exit code (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        error(self.format_message())


def format_pydantic_error(err: PydanticValidationError) -> str:
    """Format a pydantic validation error as one line per failing field.

    Example:
        >>> format_pydantic_error(err)
        "Validation failed:\\n  - external_api_package: Value error, ..."
    """
    errors: list[ErrorDetails] = err.errors()
    lines = ["Validation failed:"]
    for e in errors:
        loc = ".".join(str(x) for x in e["loc"]) or "config"
        lines.append(f"  - {loc}: {e['msg']}")
    return "\n".join(lines)


def describe_failure(err: PureCompiledError) -> str:
    """User message of a pipeline error followed by the failing stage's message.

    Args:
        err: Error raised by the pipeline.

    Returns:
        Message suitable for display.
    """
    message = err.user_message
    cause = err.__cause__
    if isinstance(err, PipelineError) and cause is not None:
        detail = cause.user_message if isinstance(cause, PureCompiledError) else str(cause)
        message = f"{message}: {detail}"
    return message


def to_cli_error(err: Exception) -> CLIError:
    """Map an exception raised while running a command to a CLIError.

    Raises nothing; callers raise the returned error ``from`` the original.
    """
    if isinstance(err, PydanticValidationError):
        return CLIError(format_pydantic_error(err), exit_code=EXIT_SYSTEM_ERROR)
    if isinstance(err, PureCompiledError):
        return CLIError(describe_failure(err))
    if isinstance(err, PermissionError):
        return CLIError(f"Permission denied: {err.filename}", exit_code=EXIT_SYSTEM_ERROR)
    if isinstance(err, OSError):
        return CLIError(str(err), exit_code=EXIT_SYSTEM_ERROR)
    return CLIError(str(err))
