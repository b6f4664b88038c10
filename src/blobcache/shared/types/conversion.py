"""
Type Conversion Utilities

This module maps JSON text onto caller-specified Python types and dumps
arbitrary Python values to JSON-compatible data, both through pydantic.

Conversion Strategy:
- Use TypeAdapter for any type pydantic understands (models, dataclasses,
  TypedDicts, generic containers, primitives)
- Cache TypeAdapter instances per target type
- Wrap ValidationError into TypeCoercionError
"""

from __future__ import annotations

import functools
from typing import Any, TypeVar, cast

from pydantic import BaseModel, PydanticSchemaGenerationError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from blobcache.shared.errors import (
    create_invalid_argument_error,
    create_type_coercion_error,
)

T = TypeVar("T")


@functools.lru_cache(maxsize=128)
def _get_type_adapter(target: Any) -> TypeAdapter[Any]:
    """Get or create a cached TypeAdapter for the given type.

    TypeAdapter instances are expensive to create, so they are cached
    with functools.lru_cache. The target must be hashable, which holds for
    classes and parametrized generics such as ``list[int]``.

    Args:
        target: Type to create adapter for

    Returns:
        Cached TypeAdapter instance
    """
    return TypeAdapter(target)


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or str(target)


class TypeConverter:
    """Static utility class for converting between JSON and Python types.

    Usage:
        >>> from pydantic import BaseModel
        >>> class Point(BaseModel):
        ...     x: int
        ...     y: int
        >>> TypeConverter.from_json('{"x": 1, "y": 2}', Point)
        Point(x=1, y=2)
        >>> TypeConverter.to_jsonable(Point(x=1, y=2))
        {'x': 1, 'y': 2}
    """

    @staticmethod
    def from_json(text: str, target: type[T]) -> T:
        """Validate JSON text into an instance of ``target``.

        Args:
            text: JSON document text
            target: Target type

        Returns:
            Validated instance of ``target``

        Raises:
            TypeCoercionError: If validation fails (wraps pydantic ValidationError)
        """
        try:
            adapter = _get_type_adapter(target)
            return cast("T", adapter.validate_json(text))
        except ValidationError as e:
            model_name = _type_name(target)
            validation_errors = cast(
                "list[dict[str, Any]]", [dict(err) for err in e.errors()]
            )
            raise create_type_coercion_error(
                message=(
                    f"Failed to convert JSON to {model_name}: "
                    f"{e.error_count()} validation error(s)"
                ),
                model_name=model_name,
                validation_errors=validation_errors,
                operation="json_to_type",
                original_error=e,
            ) from e

    @staticmethod
    def to_jsonable(value: Any) -> Any:
        """Dump a Python value to JSON-compatible data.

        Args:
            value: A pydantic model, dataclass, enum, datetime or any
                other value pydantic can serialize

        Returns:
            Data made of dict, list, str, int, float, bool and None

        Raises:
            InvalidArgumentError: If pydantic cannot serialize the value's type
        """
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True)
        try:
            adapter = _get_type_adapter(type(value))
            return adapter.dump_python(value, mode="json")
        except (PydanticSchemaGenerationError, PydanticSerializationError) as e:
            error = create_invalid_argument_error(
                f"Cannot store value of type {type(value).__name__}: {e}",
                argument="value",
                operation="to_jsonable",
            )
            raise error from e
