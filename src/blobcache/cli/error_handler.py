"""
CLI Error Handling Utilities

Maps exceptions raised by commands to ``CliError``, logs them and prints
them as text or as a JSON envelope.
"""

from __future__ import annotations

import logging
from typing import Any

import typer

from blobcache.cli.json_formatter import format_json_output
from blobcache.shared.constants import CLIDefaults
from blobcache.shared.errors import (
    BlobCacheError,
    CliError,
    ErrorCode,
    create_cli_error,
)

logger = logging.getLogger(__name__)


def handle_cli_error(
    error: Exception,
    command: str,
    *,
    json_output: bool = False,
) -> int:
    """Handle CLI errors with consistent formatting and logging.

    Args:
        error: The exception that occurred
        command: The CLI command being executed
        json_output: Whether to output JSON format

    Returns:
        Exit code for the CLI command
    """
    cli_error = _map_error_to_cli_error(error, command)
    _log_error(error, command, cli_error)
    _output_error(cli_error, error, command, json_output=json_output)
    return cli_error.exit_code


def _map_error_to_cli_error(error: Exception, command: str) -> CliError:
    """Map specific exception types to CLI errors."""
    if isinstance(error, CliError):
        return error

    if isinstance(error, BlobCacheError):
        return create_cli_error(
            message=error.message,
            command=command,
            code=error.code,
            exit_code=CLIDefaults.EXIT_ERROR,
            original_error=error,
        )

    if isinstance(error, OSError):
        return create_cli_error(
            message=f"File system error: {error}",
            command=command,
            exit_code=CLIDefaults.EXIT_ERROR,
            original_error=error,
        )

    return create_cli_error(
        message=f"Unexpected error: {error}",
        command=command,
        code=ErrorCode.CLI_UNEXPECTED_ERROR,
        exit_code=CLIDefaults.EXIT_ERROR,
        original_error=error,
    )


def _log_error(error: Exception, command: str, cli_error: CliError) -> None:
    """Log the error with structured context."""
    error_context: dict[str, Any] = {
        "command": command,
        "error_type": type(error).__name__,
    }
    if isinstance(error, BlobCacheError):
        logger.error(
            "CLI error in %s: %s",
            command,
            cli_error.message,
            extra={"error_code": error.code.name, "context": error_context},
        )
    else:
        logger.exception(
            "CLI error in %s: %s",
            command,
            cli_error.message,
            extra={"context": error_context},
        )


def _output_error(
    cli_error: CliError,
    error: Exception,
    command: str,
    *,
    json_output: bool,
) -> None:
    """Output error message in appropriate format."""
    if not json_output:
        typer.echo(f"Error: {cli_error.message}", err=True)
        return

    source = error if isinstance(error, BlobCacheError) else cli_error
    payload = source.to_dict()
    payload["error_type"] = type(error).__name__
    payload["exit_code"] = cli_error.exit_code
    output = format_json_output(
        success=False,
        command=command,
        errors=[cli_error.message],
        data=payload,
    )
    typer.echo(output.decode("utf-8"))
