"""
JSON Output Formatter for the blobcache CLI

Produces the machine-readable envelope printed when ``--json`` is given.
Stored values may be placed in ``data`` directly: numbers are written
with their preserved text, so large integers are not rounded.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import orjson

from blobcache.core import JsonNumber

_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2


def _default(obj: Any) -> Any:
    if isinstance(obj, JsonNumber):
        return orjson.Fragment(obj.text)
    if isinstance(obj, Mapping):
        return dict(obj)
    error_msg = f"Type is not JSON serializable: {type(obj).__name__}"
    raise TypeError(error_msg)


def _envelope(
    success: bool,
    command: str,
    data: Any,
    errors: list[str],
    warnings: list[str],
) -> dict[str, Any]:
    return {
        "success": success,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "command": command,
        "data": data,
        "errors": errors,
        "warnings": warnings,
    }


def format_json_output(
    success: bool,
    command: str,
    data: Any | None = None,
    errors: list[str] | None = None,
    warnings: list[str] | None = None,
) -> bytes:
    """
    Format command output as JSON.

    Args:
        success: Whether the command executed successfully; forced to
            False when errors are given
        command: The command name (e.g., "get", "keys")
        data: The command's output data
        errors: List of error messages
        warnings: List of warning messages

    Returns:
        JSON-encoded bytes ready for output. If ``data`` cannot be
        serialized, an error envelope is returned instead.

    Example:
        >>> print(format_json_output(True, "get", {"value": JsonNumber("1.50")}).decode())
        {
          "command": "get",
          "data": {
            "value": 1.50
          },
          "errors": [],
          "success": true,
          "timestamp": "2026-10-19T10:30:00+00:00",
          "warnings": []
        }
    """
    errors = errors or []
    warnings = warnings or []
    envelope = _envelope(success and not errors, command, data, errors, warnings)
    try:
        return orjson.dumps(envelope, default=_default, option=_OPTIONS)
    except orjson.JSONEncodeError as e:
        fallback = _envelope(False, command, None, [f"JSON serialization failed: {e!s}"], [])
        return orjson.dumps(fallback, option=_OPTIONS)
