"""
blobcache Typer CLI Application

Command-line access to a cache document: read typed values, write JSON
values, list keys and dump or clear the whole document.
"""

from __future__ import annotations

import logging
import time
from typing import Annotated, Any

import typer
from dependency_injector import providers
from rich.console import Console
from rich.table import Table

from blobcache import __version__
from blobcache.cli.context import CliContext, LogLevel, get_cli_context, set_cli_context
from blobcache.cli.error_handler import handle_cli_error
from blobcache.cli.json_formatter import format_json_output
from blobcache.config import Settings, load_settings
from blobcache.containers import Container
from blobcache.core import decode_value, encode_value
from blobcache.services import BlobCache
from blobcache.shared.constants import (
    CacheProfile,
    CLICommands,
    CLIHelp,
    StoreBackend,
    ValueTypes,
)
from blobcache.shared.errors import CacheFormatError, ErrorCode, create_cli_error
from blobcache.shared.logging import log_operation_start, setup_structured_logger

app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


def _apply_overrides(
    settings: Settings,
    store: str | None,
    backend: StoreBackend | None,
    profile: CacheProfile | None,
) -> Settings:
    """Return settings with the command-line overrides applied."""
    overrides: dict[str, Any] = {}
    if store is not None:
        overrides["store_path"] = store
    if backend is not None:
        overrides["backend"] = backend
    if profile is not None:
        overrides["profile"] = profile
    if not overrides:
        return settings
    return settings.model_copy(
        update={"cache": settings.cache.model_copy(update=overrides)},
    )


@app.callback()
def main(
    store: Annotated[
        str | None, typer.Option("--store", "-s", help=CLIHelp.STORE_HELP)
    ] = None,
    backend: Annotated[
        StoreBackend | None, typer.Option("--backend", help=CLIHelp.BACKEND_HELP)
    ] = None,
    profile: Annotated[
        CacheProfile | None, typer.Option("--profile", help=CLIHelp.PROFILE_HELP)
    ] = None,
    log_level: Annotated[
        LogLevel, typer.Option("--log-level", help=CLIHelp.LOG_LEVEL_HELP)
    ] = LogLevel.WARNING,
    json_output: Annotated[
        bool, typer.Option("--json", help=CLIHelp.JSON_HELP)
    ] = False,
) -> None:
    """Main CLI callback: resolve settings and configure logging."""
    try:
        settings = _apply_overrides(load_settings(), store, backend, profile)
        setup_structured_logger(
            level=log_level.value,
            log_file=settings.logging.file,
            use_rich_console=settings.logging.rich_console,
        )
        set_cli_context(
            CliContext(settings=settings, log_level=log_level, json_output=json_output),
        )
    except Exception as e:
        exit_code = handle_cli_error(e, "main-callback", json_output=json_output)
        raise typer.Exit(exit_code) from e


def _open_cache(context: CliContext) -> BlobCache:
    container = Container()
    container.config.override(providers.Object(context.settings))
    return container.cache()


def _run(command: str, action: Any) -> None:
    """Run ``action(cache)`` and print its result.

    ``action`` returns ``(data, text)``: ``data`` goes into the JSON
    envelope, ``text`` is echoed in plain mode (nothing when None).
    """
    context = get_cli_context()
    json_output = context.is_json_output_enabled()
    try:
        log_operation_start(logger, command)
        start = time.perf_counter()
        cache = _open_cache(context)
        try:
            data, text = action(cache)
        finally:
            cache.close()
        duration_ms = (time.perf_counter() - start) * 1000
    except Exception as e:
        exit_code = handle_cli_error(e, command, json_output=json_output)
        raise typer.Exit(exit_code) from e

    if json_output:
        payload = format_json_output(success=True, command=command, data=data)
        typer.echo(payload.decode("utf-8"))
    elif text is not None:
        typer.echo(text)
    logger.debug("Command '%s' finished in %.2fms", command, duration_ms)


def _parse_value(raw: str) -> Any:
    """Parse VALUE as JSON, falling back to the literal string."""
    try:
        return decode_value(raw)
    except CacheFormatError:
        return raw


def _read_typed(cache: BlobCache, key: str, value_type: str) -> Any:
    readers = {
        ValueTypes.STR: cache.get_string,
        ValueTypes.INT: cache.get_int,
        ValueTypes.LONG: cache.get_long,
        ValueTypes.FLOAT: cache.get_float,
        ValueTypes.DOUBLE: cache.get_double,
        ValueTypes.BOOL: cache.get_bool,
    }
    reader = readers.get(value_type)
    if reader is None:
        raise create_cli_error(
            f"Unknown value type '{value_type}'; expected one of {', '.join(ValueTypes.ALL)}",
            command=CLICommands.GET,
            code=ErrorCode.CLI_INVALID_ARGUMENTS,
        )
    return reader(key)


@app.command(CLICommands.GET)
def get_command(
    key: Annotated[str, typer.Argument(help="Cache key")],
    value_type: Annotated[
        str, typer.Option("--type", "-t", help=CLIHelp.TYPE_HELP)
    ] = ValueTypes.RAW,
) -> None:
    """
    Print the value stored under KEY.

    With the default ``--type raw`` the stored JSON is printed as is
    ("null" when the key is absent). Other types apply the same coercion
    as the typed getters of the library.
    """

    def action(cache: BlobCache) -> tuple[Any, str]:
        if value_type == ValueTypes.RAW:
            stored = cache.get(key)
            return {"key": key, "type": value_type, "value": stored}, encode_value(stored)
        value = _read_typed(cache, key, value_type)
        text = "" if value is None else str(value)
        if isinstance(value, bool):
            text = str(value).lower()
        return {"key": key, "type": value_type, "value": value}, text

    _run(CLICommands.GET, action)


@app.command(CLICommands.SET)
def set_command(
    key: Annotated[str, typer.Argument(help="Cache key")],
    value: Annotated[str, typer.Argument(help=CLIHelp.VALUE_HELP)],
) -> None:
    """Store VALUE under KEY, keeping every other entry."""

    def action(cache: BlobCache) -> tuple[Any, None]:
        parsed = _parse_value(value)
        cache.set(key, parsed)
        return {"key": key, "value": cache.get(key)}, None

    _run(CLICommands.SET, action)


@app.command(CLICommands.REMOVE)
def remove_command(
    key: Annotated[str, typer.Argument(help="Cache key")],
) -> None:
    """Remove KEY; prints whether an entry was removed."""

    def action(cache: BlobCache) -> tuple[Any, str]:
        removed = cache.remove(key)
        return {"key": key, "removed": removed}, "removed" if removed else "not found"

    _run(CLICommands.REMOVE, action)


@app.command(CLICommands.CONTAINS)
def contains_command(
    key: Annotated[str, typer.Argument(help="Cache key")],
) -> None:
    """Print true if KEY is present, false otherwise."""

    def action(cache: BlobCache) -> tuple[Any, str]:
        present = cache.contains_key(key)
        return {"key": key, "present": present}, "true" if present else "false"

    _run(CLICommands.CONTAINS, action)


@app.command(CLICommands.KEYS)
def keys_command() -> None:
    """List every key in sorted order."""
    console = Console()

    def action(cache: BlobCache) -> tuple[Any, None]:
        keys = cache.keys()
        if not get_cli_context().is_json_output_enabled():
            table = Table(title="Cache keys")
            table.add_column("Key", style="cyan")
            for name in keys:
                table.add_row(name)
            console.print(table)
        return {"keys": keys, "count": len(keys)}, None

    _run(CLICommands.KEYS, action)


@app.command(CLICommands.DUMP)
def dump_command() -> None:
    """Print the persisted document text."""

    def action(cache: BlobCache) -> tuple[Any, str]:
        raw = cache.get_all_raw()
        return {"document": raw}, raw or ""

    _run(CLICommands.DUMP, action)


@app.command(CLICommands.CLEAR)
def clear_command(
    yes: Annotated[bool, typer.Option("--yes", "-y", help=CLIHelp.YES_HELP)] = False,
) -> None:
    """Erase the whole cache document."""
    if not yes:
        typer.confirm("Erase every cache entry?", abort=True)

    def action(cache: BlobCache) -> tuple[Any, str]:
        cache.clear()
        return {"cleared": True}, "cleared"

    _run(CLICommands.CLEAR, action)


@app.command("version")
def version_command() -> None:
    """Print the installed version."""
    typer.echo(f"{CLIHelp.APP_NAME} {__version__}")
