"""Type-preserving representation of cache values.

A stored value is any JSON value. Numbers are kept as ``JsonNumber``
instances holding their exact textual form, so integer and floating
point interpretation is deferred to the caller's accessor and large
integers never pass through a double.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from blobcache.shared.errors import create_invalid_argument_error
from blobcache.shared.types import TypeConverter

_JSON_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_SURROGATE_RE = re.compile("[\ud800-\udfff]")


class JsonNumber:
    """A JSON number with its original text preserved.

    Compares equal to ``int``, ``float`` and ``Decimal`` values that denote
    exactly the same number, and hashes like them.

    Example:
        >>> n = JsonNumber("9007199254740993")
        >>> n == 9007199254740993
        True
        >>> n.is_integral
        True
    """

    __slots__ = ("is_integral", "text")

    def __init__(self, text: str, is_integral: bool | None = None) -> None:
        if not _JSON_NUMBER_RE.fullmatch(text):
            error_msg = f"Not a JSON number: {text!r}"
            raise ValueError(error_msg)
        self.text = text
        if is_integral is None:
            is_integral = not any(c in text for c in ".eE")
        self.is_integral = is_integral

    @classmethod
    def integral(cls, text: str) -> JsonNumber:
        """Build from integer literal text (``json.loads`` parse_int hook)."""
        return cls(text, True)

    @classmethod
    def fractional(cls, text: str) -> JsonNumber:
        """Build from fraction/exponent literal text (parse_float hook)."""
        return cls(text, False)

    @classmethod
    def from_python(cls, value: int | float | Decimal) -> JsonNumber:
        """Build from a Python number.

        Raises:
            InvalidArgumentError: If the value is NaN or infinite
        """
        if isinstance(value, bool):
            error_msg = "bool is not a JSON number"
            raise TypeError(error_msg)
        if isinstance(value, int):
            try:
                return cls(int.__repr__(value), True)
            except ValueError as e:
                raise create_invalid_argument_error(
                    f"Cannot store integer: {e}",
                    argument="value",
                    operation="to_stored",
                ) from e
        if isinstance(value, float):
            if not math.isfinite(value):
                raise create_invalid_argument_error(
                    f"Cannot store non-finite float {value!r}",
                    argument="value",
                    operation="to_stored",
                )
            return cls(float.__repr__(value), False)
        if not value.is_finite():
            raise create_invalid_argument_error(
                f"Cannot store non-finite decimal {value!s}",
                argument="value",
                operation="to_stored",
            )
        return cls(str(value))

    def as_decimal(self) -> Decimal:
        """Return the exact value as a Decimal."""
        return Decimal(self.text)

    def __int__(self) -> int:
        return int(self.as_decimal())

    def __float__(self) -> float:
        return float(self.text)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JsonNumber):
            return self.as_decimal() == other.as_decimal()
        if isinstance(other, bool):
            return False
        if isinstance(other, (int, float, Decimal)):
            # exact comparison: JsonNumber("0.1") != 0.1, like Decimal("0.1")
            return self.as_decimal() == Decimal(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.as_decimal())

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"JsonNumber({self.text!r})"


def has_lone_surrogate(text: str) -> bool:
    """True if ``text`` holds a surrogate code point, which UTF-8 cannot carry."""
    return _SURROGATE_RE.search(text) is not None


def check_text(text: str, argument: str = "value", operation: str = "to_stored") -> str:
    """Return ``text`` unchanged, rejecting lone surrogates.

    Raises:
        InvalidArgumentError: If the text cannot be written as UTF-8 JSON
    """
    if has_lone_surrogate(text):
        raise create_invalid_argument_error(
            f"{argument.capitalize()} contains a lone surrogate code point",
            argument=argument,
            operation=operation,
        )
    return text


StoredValue = Union[
    None,
    bool,
    JsonNumber,
    str,
    "list[StoredValue]",
    "dict[str, StoredValue]",
]


def to_stored(value: Any) -> StoredValue:
    """Convert caller data into the stored value union.

    Plain JSON data is converted directly. Anything else (pydantic
    models, dataclasses, enums, datetimes...) is first dumped to JSON
    data through pydantic.

    Raises:
        InvalidArgumentError: If the value cannot be represented as JSON
    """
    if value is None or isinstance(value, (bool, JsonNumber)):
        return value
    if isinstance(value, Enum):
        return to_stored(TypeConverter.to_jsonable(value))
    if isinstance(value, str):
        return check_text(value)
    if isinstance(value, (int, float, Decimal)):
        return JsonNumber.from_python(value)
    if isinstance(value, Mapping):
        converted: dict[str, StoredValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise create_invalid_argument_error(
                    f"Object keys must be strings, got {type(key).__name__}",
                    argument="value",
                    operation="to_stored",
                )
            converted[check_text(key, "key")] = to_stored(item)
        return converted
    if isinstance(value, (list, tuple)):
        return [to_stored(item) for item in value]
    return to_stored(TypeConverter.to_jsonable(value))
