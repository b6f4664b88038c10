"""Type coercion of stored values.

Every function here receives a present, non-null stored value and
converts it to the requested primitive. Absence and default handling
belong to the cache engine. A value that cannot be parsed as the
requested type raises ``CacheFormatError``; nothing is silently coerced
to zero.
"""

from __future__ import annotations

import re
import struct
from typing import TypeVar

from blobcache.core.codec import encode_value
from blobcache.core.stored_value import JsonNumber, StoredValue
from blobcache.shared.constants import IntRange
from blobcache.shared.errors import ErrorCode, create_format_error
from blobcache.shared.types import TypeConverter

T = TypeVar("T")

_INTEGER_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?(?:NaN|Infinity)")
_MAX_INTEGER_DIGITS = 19


def text_of(value: StoredValue) -> str:
    """Canonical textual form of a stored value.

    Strings are returned without enclosing quotes, numbers as their
    preserved text, everything else as compact JSON.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, JsonNumber):
        return value.text
    return encode_value(value)


def _scalar_text(value: StoredValue, key: str, target: str) -> str:
    if isinstance(value, (JsonNumber, str)):
        return text_of(value)
    raise create_format_error(
        f"Value of '{key}' is {type(value).__name__}, not a {target}",
        key=key,
        operation=f"coerce_{target}",
        code=ErrorCode.TYPE_COERCION_ERROR,
    )


def _parse_integer(value: StoredValue, key: str, target: str, low: int, high: int) -> int:
    text = _scalar_text(value, key, target)
    if not _INTEGER_RE.fullmatch(text):
        raise create_format_error(
            f"Value of '{key}' is not a base-10 integer: {text!r}",
            key=key,
            operation=f"coerce_{target}",
            code=ErrorCode.TYPE_COERCION_ERROR,
        )
    # int64 bounds have 19 digits; longer text never reaches int()
    digits = text.lstrip("+-").lstrip("0")
    result = int(text) if len(digits) <= _MAX_INTEGER_DIGITS else None
    if result is None or not low <= result <= high:
        raise create_format_error(
            f"Value of '{key}' is out of {target} range: {text}",
            key=key,
            operation=f"coerce_{target}",
            code=ErrorCode.TYPE_COERCION_ERROR,
        )
    return result


def _parse_float(value: StoredValue, key: str, target: str) -> float:
    text = _scalar_text(value, key, target)
    if not _FLOAT_RE.fullmatch(text):
        raise create_format_error(
            f"Value of '{key}' is not a floating point number: {text!r}",
            key=key,
            operation=f"coerce_{target}",
            code=ErrorCode.TYPE_COERCION_ERROR,
        )
    return float(text.replace("Infinity", "inf"))


def to_bool(value: StoredValue) -> bool:
    """True only when the textual form equals "true", ignoring case."""
    return text_of(value).lower() == "true"


def to_int32(value: StoredValue, key: str) -> int:
    """Parse a 32-bit signed integer."""
    return _parse_integer(value, key, "int", IntRange.INT32_MIN, IntRange.INT32_MAX)


def to_int64(value: StoredValue, key: str) -> int:
    """Parse a 64-bit signed integer."""
    return _parse_integer(value, key, "long", IntRange.INT64_MIN, IntRange.INT64_MAX)


def to_float32(value: StoredValue, key: str) -> float:
    """Parse a number and round it to IEEE single precision."""
    result = _parse_float(value, key, "float")
    try:
        return struct.unpack("f", struct.pack("f", result))[0]
    except OverflowError as e:
        raise create_format_error(
            f"Value of '{key}' is out of float range: {result!r}",
            key=key,
            operation="coerce_float",
            code=ErrorCode.TYPE_COERCION_ERROR,
            original_error=e,
        ) from e


def to_float64(value: StoredValue, key: str) -> float:
    """Parse a double precision number."""
    return _parse_float(value, key, "double")


def to_string(value: StoredValue) -> str:
    """Textual form of the value; JSON strings come back unquoted."""
    return text_of(value)


def to_object(value: StoredValue, target: type[T]) -> T:
    """Map the value's JSON text onto ``target`` through pydantic.

    Raises:
        TypeCoercionError: If the value does not validate as ``target``
    """
    return TypeConverter.from_json(encode_value(value), target)
