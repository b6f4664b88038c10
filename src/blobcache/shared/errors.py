"""blobcache errors.

Every error carries an ``ErrorCode`` and a frozen ``ErrorContext`` whose
extra data is restricted to primitives, so it can be logged as is. Errors
are split into domain (bad data or arguments), infrastructure (backing
store I/O) and application (lifecycle, configuration, CLI) layers.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for blobcache.

    This enum serves as the single source of truth for all error codes
    used throughout the package.
    """

    # Lifecycle Errors
    CACHE_NOT_INITIALIZED = "CACHE_NOT_INITIALIZED"

    # Format and Coercion Errors
    CACHE_FORMAT_ERROR = "CACHE_FORMAT_ERROR"
    INVALID_JSON = "INVALID_JSON"
    NOT_A_JSON_OBJECT = "NOT_A_JSON_OBJECT"
    TYPE_COERCION_ERROR = "TYPE_COERCION_ERROR"
    UNSUPPORTED_VALUE = "UNSUPPORTED_VALUE"

    # Argument Errors
    INVALID_ARGUMENT = "INVALID_ARGUMENT"

    # Backing Store Errors
    STORE_READ_FAILED = "STORE_READ_FAILED"
    STORE_WRITE_FAILED = "STORE_WRITE_FAILED"
    STORE_CLEAR_FAILED = "STORE_CLEAR_FAILED"
    UNKNOWN_BACKEND = "UNKNOWN_BACKEND"

    # Configuration Errors
    CONFIG_ERROR = "CONFIG_ERROR"

    # CLI Errors
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"
    CLI_INVALID_ARGUMENTS = "CLI_INVALID_ARGUMENTS"


def _to_primitive(key: str, val: Any) -> PrimitiveContextValue:
    if isinstance(val, Enum):
        return val.value
    if isinstance(val, (str, int, float, bool)):
        return val
    if isinstance(val, Path):
        return str(val)
    if isinstance(val, Decimal):
        return float(val)
    error_msg = (
        f"additional_data[{key!r}] is {type(val).__name__}; expected str, int, "
        "float, bool, Enum, Path or Decimal"
    )
    raise TypeError(error_msg)


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Reduce additional_data to primitive values, dropping None entries.

    Raises:
        TypeError: If value is not a dict or holds an unsupported type
    """
    if value is None:
        return None
    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)
    return {key: _to_primitive(key, val) for key, val in value.items() if val is not None}


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data so that contexts serialize safely into log records.

    Attributes:
        file_path: Optional file path associated with the error
        operation: Optional operation name that caused the error
        additional_data: Optional dict with primitive values only
    """

    file_path: str | None = None
    operation: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self) -> dict[str, Any]:
        """Export context as dict for logging.

        Returns:
            Dictionary with non-empty fields and a guaranteed additional_data key.

        Example:
            >>> ErrorContextModel(operation="cache_set").safe_dict()
            {'operation': 'cache_set', 'additional_data': {}}
        """
        data: dict[str, Any] = {}
        if self.file_path is not None:
            data["file_path"] = self.file_path
        if self.operation is not None:
            data["operation"] = self.operation
        data["additional_data"] = dict(self.additional_data or {})
        return data


ErrorContext = ErrorContextModel


class BlobCacheError(Exception):
    """Base exception class for all blobcache errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize BlobCacheError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error
        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging and CLI output.

        Returns:
            Dictionary representation of the error with code, message,
            context, and original_error (if present)
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(BlobCacheError):
    """Domain-specific errors.

    These errors occur when cache data or caller input violates the
    cache's rules.

    Examples:
    - Persisted document is not a JSON object
    - Stored value cannot be coerced to the requested type
    - Null mapping passed to a bulk write
    """


class InfrastructureError(BlobCacheError):
    """Infrastructure-related errors.

    These errors occur when interacting with the backing store
    (file system, SQLite database).
    """


class ApplicationError(BlobCacheError):
    """Application-level errors.

    These errors occur at the application layer, typically
    related to configuration, lifecycle, or command handling.
    """


class NotInitializedError(ApplicationError):
    """Raised when a strict cache is used before ``initialize()``."""

    def __init__(
        self,
        message: str = "Cache is not bound to a backing store; call initialize() first",
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(ErrorCode.CACHE_NOT_INITIALIZED, message, context)


class CacheFormatError(DomainError):
    """Persisted or stored data does not have the expected shape.

    Raised when the persisted text is not valid JSON (strict profile),
    when it is valid JSON but not an object, or when a typed accessor
    cannot parse a stored value as the requested primitive.
    """


class InvalidArgumentError(DomainError):
    """A caller passed an argument the cache cannot accept."""


class BackingStoreError(InfrastructureError):
    """A backing store failed to read, write, or clear its data."""


class CliError(ApplicationError):
    """CLI-specific error carrying the process exit code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ):
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


class TypeCoercionError(CacheFormatError):
    """Exception raised when a stored value cannot be mapped onto a type.

    This exception wraps a pydantic ValidationError and keeps the
    field-level details for debugging.

    Attributes:
        model_name: Name of the target type
        validation_errors: List of field-level validation errors
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        model_name: str | None = None,
        validation_errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(code, message, context, original_error)
        self.model_name = model_name
        self.validation_errors = validation_errors or []


# Convenience functions for common error scenarios
def create_format_error(
    message: str,
    key: str | None = None,
    operation: str | None = None,
    code: ErrorCode = ErrorCode.CACHE_FORMAT_ERROR,
    original_error: Exception | None = None,
) -> CacheFormatError:
    """Create a format error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data={"key": key} if key is not None else None,
    )
    return CacheFormatError(code, message, context, original_error)


def create_invalid_argument_error(
    message: str,
    argument: str,
    operation: str | None = None,
) -> InvalidArgumentError:
    """Create an invalid argument error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data={"argument": argument},
    )
    return InvalidArgumentError(ErrorCode.INVALID_ARGUMENT, message, context)


def create_store_error(
    message: str,
    code: ErrorCode,
    file_path: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> BackingStoreError:
    """Create a backing store error with context."""
    context = ErrorContext(
        file_path=file_path,
        operation=operation,
    )
    return BackingStoreError(code, message, context, original_error)


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    """Create a configuration error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"config_key": config_key} if config_key else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return ApplicationError(
        ErrorCode.CONFIG_ERROR,
        message,
        context,
        original_error,
    )


def create_type_coercion_error(
    message: str,
    model_name: str,
    validation_errors: list[dict[str, Any]] | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> TypeCoercionError:
    """Create a type coercion error with context.

    Args:
        message: Error message
        model_name: Target type name
        validation_errors: pydantic validation error details
        operation: Operation being performed
        original_error: Original ValidationError

    Returns:
        TypeCoercionError instance
    """
    additional_data: dict[str, PrimitiveContextValue] = {
        "model_name": model_name,
        "validation_error_count": len(validation_errors) if validation_errors else 0,
    }
    context = ErrorContext(
        operation=operation or "type_conversion",
        additional_data=additional_data,
    )
    return TypeCoercionError(
        code=ErrorCode.TYPE_COERCION_ERROR,
        message=message,
        context=context,
        original_error=original_error,
        model_name=model_name,
        validation_errors=validation_errors,
    )


def create_cli_error(
    message: str,
    command: str,
    code: ErrorCode = ErrorCode.CLI_UNEXPECTED_ERROR,
    exit_code: int = 1,
    original_error: Exception | None = None,
) -> CliError:
    """Create a CLI error with context."""
    context = ErrorContext(
        operation=command,
        additional_data={"command": command},
    )
    return CliError(
        code,
        message,
        context,
        original_error,
        command=command,
        exit_code=exit_code,
    )
