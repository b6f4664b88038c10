"""Document codec.

Converts between the persisted JSON text and an in-memory
``CacheDocument``. Numbers are decoded into ``JsonNumber`` so their text
survives a decode/encode cycle unchanged; top-level keys are always
written in sorted order.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

import orjson

from blobcache.core.stored_value import JsonNumber, StoredValue, has_lone_surrogate
from blobcache.shared.errors import ErrorCode, create_format_error


class CacheDocument(MutableMapping[str, StoredValue]):
    """The full decoded cache state.

    Iteration order is the sort order of keys, independent of insertion
    order, so two processes encoding the same entries produce the same
    text.
    """

    def __init__(self, entries: Mapping[str, StoredValue] | None = None) -> None:
        self._entries: dict[str, StoredValue] = dict(entries or {})

    def __getitem__(self, key: str) -> StoredValue:
        return self._entries[key]

    def __setitem__(self, key: str, value: StoredValue) -> None:
        self._entries[key] = value

    def __delitem__(self, key: str) -> None:
        del self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CacheDocument):
            return self._entries == other._entries
        if isinstance(other, Mapping):
            return self._entries == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        items = ", ".join(f"{key!r}: {self._entries[key]!r}" for key in self)
        return f"CacheDocument({{{items}}})"


def _reject_constant(name: str) -> StoredValue:
    error_msg = f"Non-standard JSON constant: {name}"
    raise ValueError(error_msg)


def _reject_lone_surrogates(value: StoredValue) -> None:
    if isinstance(value, str):
        if has_lone_surrogate(value):
            error_msg = "String holds a lone surrogate escape"
            raise ValueError(error_msg)
    elif isinstance(value, list):
        for item in value:
            _reject_lone_surrogates(item)
    elif isinstance(value, dict):
        for key, item in value.items():
            _reject_lone_surrogates(key)
            _reject_lone_surrogates(item)


def decode_value(text: str) -> StoredValue:
    """Parse any JSON value, keeping numbers as ``JsonNumber``.

    Raises:
        CacheFormatError: If the text is not valid JSON, or holds a string
            with a lone surrogate that could never be written back
    """
    try:
        parsed = json.loads(
            text,
            parse_int=JsonNumber.integral,
            parse_float=JsonNumber.fractional,
            parse_constant=_reject_constant,
        )
        _reject_lone_surrogates(parsed)
    except ValueError as e:
        raise create_format_error(
            f"Invalid JSON: {e}",
            operation="decode",
            code=ErrorCode.INVALID_JSON,
            original_error=e,
        ) from e
    return parsed


def decode(text: str | None) -> CacheDocument:
    """Decode persisted text into a CacheDocument.

    Args:
        text: Persisted JSON text; None or blank means nothing is stored

    Returns:
        The decoded document

    Raises:
        CacheFormatError: If the text is not valid JSON (code INVALID_JSON)
            or is valid JSON but not an object (code NOT_A_JSON_OBJECT)
    """
    if text is None or not text.strip():
        return CacheDocument()

    parsed = decode_value(text)
    if not isinstance(parsed, dict):
        raise create_format_error(
            f"Cache document must be a JSON object, got {type(parsed).__name__}",
            operation="decode",
            code=ErrorCode.NOT_A_JSON_OBJECT,
        )
    return CacheDocument(parsed)


def _default(value: Any) -> Any:
    if isinstance(value, JsonNumber):
        return orjson.Fragment(value.text)
    if isinstance(value, Mapping):
        return dict(value)
    error_msg = f"Unsupported stored value type: {type(value).__name__}"
    raise TypeError(error_msg)


def encode_value(value: StoredValue) -> str:
    """Serialize a single stored value to compact JSON text.

    Numbers are written with their preserved text. Nested objects keep
    their own key order.

    Raises:
        CacheFormatError: If the value is outside the stored value union
            (code UNSUPPORTED_VALUE)
    """
    try:
        return orjson.dumps(value, default=_default).decode("utf-8")
    except orjson.JSONEncodeError as e:
        raise create_format_error(
            f"Cannot encode value: {e}",
            operation="encode",
            code=ErrorCode.UNSUPPORTED_VALUE,
            original_error=e,
        ) from e


def encode(document: Mapping[str, StoredValue]) -> str:
    """Serialize a document with its top-level keys in sorted order."""
    ordered = document if isinstance(document, CacheDocument) else CacheDocument(document)
    return encode_value(ordered)
